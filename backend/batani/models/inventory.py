from __future__ import annotations

from ..extensions import db
from batani.time_utils import utcnow, to_utc_z
from .common import new_id, money_str


class Supplier(db.Model):
    """
    Supplier master data.

    Products point at suppliers through a weak supplier_id. Deleting a
    supplier never touches products; readers resolve a missing supplier
    to "unknown".
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_created_at", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data.

    PRODUCT NUMBER:
    product_number is stored as entered and is unique case-insensitively
    (functional unique index on lower(product_number)). Search by product
    number always lower-cases both sides.

    STOCK:
    stock_quantity is a mutable counter owned by the stock ledger
    (services/stock_service.py). It never goes below zero; the CHECK
    constraint is the last line, the ledger's conditional UPDATE is the first.

    SUPPLIER:
    supplier_id is a weak reference with no FK constraint, so it may dangle
    after the supplier is deleted.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_created_at", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    product_number = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    # May be produced by an external text generator; stored verbatim
    description = db.Column(db.Text, nullable=True)

    supplier_id = db.Column(db.String(32), nullable=True, index=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    images = db.relationship(
        "ProductImage",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductImage.created_at",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} product_number={self.product_number!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_number": self.product_number,
            "name": self.name,
            "description": self.description,
            "supplier_id": self.supplier_id,
            "stock_quantity": self.stock_quantity,
            "price": money_str(self.price),
            "created_at": to_utc_z(self.created_at),
        }


db.Index(
    "uq_products_product_number_lower",
    db.func.lower(Product.product_number),
    unique=True,
)


class ProductImage(db.Model):
    __tablename__ = "product_images"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    product_id = db.Column(
        db.String(32),
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }
