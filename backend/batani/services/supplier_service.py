# Overview: Supplier records; deleting a supplier never touches its products.

"""
Supplier Service

DESIGN:
- Products reference suppliers through a weak supplier_id. There is no
  cascade in either direction: deleting a supplier leaves its products in
  place with a dangling supplier_id, and product reads show the supplier as
  "unknown".
- Updates replace the full row (same semantics as the entity store upsert).
"""

from __future__ import annotations

from ..extensions import db
from ..models import Product, Supplier
from . import entity_store


def list_suppliers() -> list[Supplier]:
    """Newest first."""
    return (
        db.session.query(Supplier)
        .order_by(Supplier.created_at.desc(), Supplier.id.desc())
        .all()
    )


def get_supplier(supplier_id: str) -> Supplier:
    return entity_store.get_instance("suppliers", supplier_id)


def create_supplier(payload: dict) -> dict:
    payload = {k: v for k, v in (payload or {}).items() if k != "id"}
    return entity_store.upsert("suppliers", payload)


def update_supplier(supplier_id: str, payload: dict) -> dict:
    get_supplier(supplier_id)
    return entity_store.upsert("suppliers", {**(payload or {}), "id": supplier_id})


def delete_supplier(supplier_id: str) -> bool:
    return entity_store.delete("suppliers", supplier_id)


def products_for_supplier(supplier_id: str) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.supplier_id == supplier_id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
