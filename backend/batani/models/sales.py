from __future__ import annotations

from ..extensions import db
from batani.time_utils import utcnow, to_utc_z
from .common import new_id, money_str


class Sale(db.Model):
    """
    One sale line: the append-only fact table every report is derived from.

    IMMUTABLE: rows are never updated or deleted once committed.

    MONEY:
    - total_amount = quantity * sold_price (gross line revenue)
    - commission is recorded next to it and never subtracted from total_amount
    - net (total_amount - commission) is computed for display only, never stored

    customer_id and product_id are indexed weak references so a sale
    survives deletion of the customer profile or the product.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.CheckConstraint("sold_price >= 0", name="ck_sales_sold_price_non_negative"),
        db.CheckConstraint("commission >= 0", name="ck_sales_commission_non_negative"),
        db.CheckConstraint("commission <= total_amount", name="ck_sales_commission_within_total"),
        db.Index("ix_sales_sale_date", "sale_date"),
        db.Index("ix_sales_customer_sale_date", "customer_id", "sale_date"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    customer_id = db.Column(db.String(32), nullable=False, index=True)
    product_id = db.Column(db.String(32), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    sold_price = db.Column(db.Numeric(12, 2), nullable=False)
    commission = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)

    sale_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} product_id={self.product_id} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "sold_price": money_str(self.sold_price),
            "commission": money_str(self.commission),
            "total_amount": money_str(self.total_amount),
            "sale_date": to_utc_z(self.sale_date),
            "created_at": to_utc_z(self.created_at),
        }
