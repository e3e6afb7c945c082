# Overview: Generic keyed-collection access over the five tables; the storage port every service goes through.

"""
Entity Store

One implementation on SQLAlchemy serves every backing engine: whichever
DATABASE_URL the app was created with (embedded SQLite, a remote relational
store, ...). Collections are addressed by name:

    suppliers, products, product_images, customers, sales

RULES:
- upsert replaces the whole row when the id exists (no field merge); omitted
  optional fields fall back to their column default or null.
- product_number is unique case-insensitively; phone_number is unique.
- Deleting a product deletes its images. Deleting a supplier leaves
  products.supplier_id dangling; readers render the supplier as "unknown".
- sales are append-only: no replace, no delete.
- Joined shapes (product + supplier + images, sale + names) are built at read
  time and never stored.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Product, ProductImage, Sale, Supplier
from ..models.common import money_str
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    enforce_rules_sale,
    validate_payload,
)
from .concurrency import begin_write, keyed_locks, lock_for_update, phone_key, product_key

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

KINDS = {
    "suppliers": Supplier,
    "products": Product,
    "product_images": ProductImage,
    "customers": Customer,
    "sales": Sale,
}

POLICIES = {
    "suppliers": ModelValidationPolicy(
        writable_fields={"id", "name", "contact_person", "phone", "email", "address", "created_at"},
        required_on_create={"name"},
    ),
    "products": ModelValidationPolicy(
        writable_fields={
            "id", "product_number", "name", "description", "supplier_id",
            "stock_quantity", "price", "created_at",
        },
        required_on_create={"product_number", "name"},
    ),
    "product_images": ModelValidationPolicy(
        writable_fields={"id", "product_id", "image_url", "created_at"},
        required_on_create={"product_id", "image_url"},
    ),
    "customers": ModelValidationPolicy(
        writable_fields={"id", "full_name", "phone_number", "email", "address", "created_at"},
        required_on_create={"full_name", "phone_number"},
    ),
    "sales": ModelValidationPolicy(
        writable_fields={
            "id", "customer_id", "product_id", "quantity", "sold_price",
            "commission", "total_amount", "sale_date", "created_at",
        },
        required_on_create={"customer_id", "product_id", "quantity", "sold_price", "total_amount"},
    ),
}


def model_for(kind: str):
    model = KINDS.get(kind)
    if model is None:
        raise ValidationError(f"Unknown collection: {kind}")
    return model


def _column_default(model, key: str):
    col = model.__mapper__.columns[key]
    if col.default is not None and col.default.is_scalar:
        return col.default.arg
    return None


def _lock_keys(kind: str, row: dict) -> list:
    if kind == "products" and row.get("id"):
        return [product_key(row["id"])]
    if kind == "customers" and row.get("phone_number"):
        return [phone_key(str(row["phone_number"]).strip())]
    return []


# -- rules per collection ----------------------------------------------------


def _check_product(patch: dict, existing_id: str | None) -> None:
    enforce_rules_product(patch)
    number = patch["product_number"]
    clash = db.session.query(Product).filter(
        func.lower(Product.product_number) == number.lower(),
    )
    if existing_id is not None:
        clash = clash.filter(Product.id != existing_id)
    if clash.first() is not None:
        raise ConflictError(f"Product number '{number}' already exists")


def _check_customer(patch: dict, existing_id: str | None) -> None:
    clash = db.session.query(Customer).filter(Customer.phone_number == patch["phone_number"])
    if existing_id is not None:
        clash = clash.filter(Customer.id != existing_id)
    if clash.first() is not None:
        raise ConflictError(f"Phone number '{patch['phone_number']}' already belongs to a customer")


def _check_image(patch: dict, existing_id: str | None) -> None:
    if db.session.get(Product, patch["product_id"]) is None:
        raise NotFoundError(f"Product {patch['product_id']} not found")


def _check_sale(patch: dict, existing_id: str | None) -> None:
    if existing_id is not None:
        raise ConflictError("Sales are immutable once recorded")
    commission = patch.get("commission") or Decimal("0")
    patch["commission"] = commission
    enforce_rules_sale(
        quantity=patch["quantity"],
        sold_price=patch["sold_price"],
        commission=commission,
    )
    if patch["total_amount"] != patch["sold_price"] * patch["quantity"]:
        raise ValidationError("total_amount must equal quantity * sold_price")


RULES = {
    "products": _check_product,
    "customers": _check_customer,
    "product_images": _check_image,
    "sales": _check_sale,
}


# -- writes ------------------------------------------------------------------


def save(kind: str, row: dict, *, commit: bool = True):
    """
    Insert or fully replace one row and return the model instance.

    commit=False leaves the row flushed inside the caller's transaction.
    """
    model = model_for(kind)
    policy = POLICIES[kind]
    patch = validate_payload(model=model, payload=row, policy=policy, partial=False)

    with keyed_locks().hold(*_lock_keys(kind, patch)):
        try:
            begin_write()
            obj = None
            if patch.get("id"):
                query = db.session.query(model).filter_by(id=patch["id"])
                obj = lock_for_update(query).first()

            rule = RULES.get(kind)
            if rule is not None:
                rule(patch, obj.id if obj is not None else None)

            if obj is None:
                if not patch.get("id"):
                    patch.pop("id", None)
                obj = model(**patch)
                db.session.add(obj)
            else:
                for key in policy.writable_fields - {"id"}:
                    if key in patch:
                        setattr(obj, key, patch[key])
                    elif key != "created_at":
                        setattr(obj, key, _column_default(model, key))

            db.session.flush()
            if commit:
                db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"Cannot save {kind} row: uniqueness or integrity violated") from exc
        except Exception:
            if commit:
                db.session.rollback()
            raise

    return obj


def upsert(kind: str, row: dict) -> dict:
    return save(kind, row).to_dict()


def delete(kind: str, row_id: str) -> bool:
    """
    Remove one row. Returns False when the id does not exist.

    products cascade to product_images; suppliers do not cascade; sales
    cannot be deleted.
    """
    model = model_for(kind)
    if model is Sale:
        raise ConflictError("Sales are immutable once recorded")

    keys = [product_key(row_id)] if model is Product else []
    with keyed_locks().hold(*keys):
        try:
            begin_write()
            obj = lock_for_update(db.session.query(model).filter_by(id=row_id)).first()
            if obj is None:
                db.session.rollback()
                return False

            removed_images = 0
            if model is Product:
                removed_images = (
                    db.session.query(ProductImage)
                    .filter(ProductImage.product_id == row_id)
                    .delete(synchronize_session="fetch")
                )
                db.session.expire(obj, ["images"])

            db.session.delete(obj)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    logger.info("Deleted %s id=%s (images removed: %s)", kind, row_id, removed_images)
    return True


# -- reads -------------------------------------------------------------------


def get_instance(kind: str, row_id: str):
    model = model_for(kind)
    obj = db.session.get(model, row_id)
    if obj is None:
        raise NotFoundError(f"{model.__name__} {row_id} not found")
    return obj


def get(kind: str, row_id: str) -> dict:
    return get_instance(kind, row_id).to_dict()


def list_instances(kind: str) -> list:
    model = model_for(kind)
    return db.session.query(model).order_by(model.created_at.asc(), model.id.asc()).all()


def list_rows(kind: str) -> list[dict]:
    return [obj.to_dict() for obj in list_instances(kind)]


def supplier_name(product_row: dict) -> str:
    supplier = product_row.get("supplier")
    return supplier["name"] if supplier else UNKNOWN


def products_with_relations(products: list[Product]) -> list[dict]:
    """Attach supplier (or None) and images to each product, batching both lookups."""
    if not products:
        return []

    supplier_ids = {p.supplier_id for p in products if p.supplier_id}
    suppliers = {}
    if supplier_ids:
        suppliers = {
            s.id: s.to_dict()
            for s in db.session.query(Supplier).filter(Supplier.id.in_(list(supplier_ids)))
        }

    images = defaultdict(list)
    rows = (
        db.session.query(ProductImage)
        .filter(ProductImage.product_id.in_([p.id for p in products]))
        .order_by(ProductImage.created_at.asc(), ProductImage.id.asc())
    )
    for image in rows:
        images[image.product_id].append(image.to_dict())

    result = []
    for p in products:
        data = p.to_dict()
        data["supplier"] = suppliers.get(p.supplier_id)
        data["supplier_name"] = supplier_name(data)
        data["images"] = images.get(p.id, [])
        result.append(data)
    return result


def sales_with_relations(sales: list[Sale]) -> list[dict]:
    """Attach customer_name/product_name; missing references render as "unknown"."""
    if not sales:
        return []

    customer_names = dict(
        db.session.query(Customer.id, Customer.full_name)
        .filter(Customer.id.in_(list({s.customer_id for s in sales})))
        .all()
    )
    product_names = dict(
        db.session.query(Product.id, Product.name)
        .filter(Product.id.in_(list({s.product_id for s in sales})))
        .all()
    )

    result = []
    for s in sales:
        data = s.to_dict()
        data["customer_name"] = customer_names.get(s.customer_id, UNKNOWN)
        data["product_name"] = product_names.get(s.product_id, UNKNOWN)
        data["net_amount"] = money_str(s.total_amount - s.commission)
        result.append(data)
    return result
