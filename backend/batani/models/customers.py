from __future__ import annotations

from ..extensions import db
from batani.time_utils import utcnow, to_utc_z
from .common import new_id


class Customer(db.Model):
    """
    Customer master data.

    phone_number is the natural key: the sale path resolves customers by an
    exact phone match and creates one on first sight.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("phone_number", name="uq_customers_phone_number"),
        db.Index("ix_customers_full_name", "full_name"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    full_name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} phone_number={self.phone_number!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "email": self.email,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }
