# Overview: Customer resolver and customer records; phone number is the natural key.

"""
Customer Service

WHY: A sale is entered with a name and a phone number, not a customer id.
The resolver turns the phone number into a customer, creating one the first
time a number is seen.

RESOLUTION RULES:
- Lookup is an exact match on the stripped phone number.
- An existing customer is returned unchanged. The name supplied with the
  sale is ignored on that path, so the first-seen spelling sticks.
- A new customer is flushed inside the caller's transaction before the
  caller continues.
- Two writers racing on the same new number: the in-process phone mutex
  serializes them; a writer in another process that wins the unique
  constraint is absorbed by re-reading its row inside a SAVEPOINT.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, Product, Sale
from ..models.common import money_str
from ..validation import ValidationError
from . import entity_store
from .concurrency import begin_write, keyed_locks, phone_key

logger = logging.getLogger(__name__)


def normalize_phone(phone) -> str:
    if phone is None:
        raise ValidationError("phone is required")
    phone = str(phone).strip()
    if not phone:
        raise ValidationError("phone is required")
    if len(phone) > Customer.__table__.c.phone_number.type.length:
        raise ValidationError("phone exceeds max length")
    return phone


def normalize_name(full_name) -> str:
    name = "" if full_name is None else str(full_name).strip()
    if not name:
        raise ValidationError("customerName is required")
    if len(name) > Customer.__table__.c.full_name.type.length:
        raise ValidationError("customerName exceeds max length")
    return name


def find_by_phone(phone: str) -> Customer | None:
    return db.session.query(Customer).filter(Customer.phone_number == phone).first()


def _resolve_or_create_locked(phone: str, full_name: str | None) -> tuple[Customer, bool]:
    """Resolve inside the caller's transaction. Returns (customer, created)."""
    customer = find_by_phone(phone)
    if customer is not None:
        return customer, False

    name = normalize_name(full_name)

    try:
        with db.session.begin_nested():
            customer = Customer(full_name=name, phone_number=phone)
            db.session.add(customer)
    except IntegrityError:
        customer = find_by_phone(phone)
        if customer is None:
            raise
        return customer, False

    logger.info("Created customer id=%s for phone=%s", customer.id, phone)
    return customer, True


def resolve_or_create(phone, full_name: str | None = None, *, commit: bool = True) -> Customer:
    """
    Return the customer with this phone number, creating it if unseen.

    Calling twice with the same phone returns the same customer id and
    leaves a single row.
    """
    phone = normalize_phone(phone)
    with keyed_locks().hold(phone_key(phone)):
        try:
            begin_write()
            customer, _ = _resolve_or_create_locked(phone, full_name)
            if commit:
                db.session.commit()
        except Exception:
            db.session.rollback()
            raise
    return customer


def list_customers() -> list[Customer]:
    return db.session.query(Customer).order_by(Customer.full_name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: str) -> Customer:
    return entity_store.get_instance("customers", customer_id)


def create_customer(payload: dict) -> dict:
    payload = {k: v for k, v in (payload or {}).items() if k != "id"}
    return entity_store.upsert("customers", payload)


def update_customer(customer_id: str, payload: dict) -> dict:
    get_customer(customer_id)
    return entity_store.upsert("customers", {**(payload or {}), "id": customer_id})


def delete_customer(customer_id: str) -> bool:
    """Remove the profile only; the customer's sales stay in the ledger."""
    return entity_store.delete("customers", customer_id)


def customer_history(customer_id: str) -> list[dict]:
    """That customer's sales with product names, newest first."""
    get_customer(customer_id)
    rows = (
        db.session.query(Sale, Product.name)
        .outerjoin(Product, Product.id == Sale.product_id)
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    history = []
    for sale, product_name in rows:
        data = sale.to_dict()
        data["product_name"] = product_name or entity_store.UNKNOWN
        data["net_amount"] = money_str(sale.total_amount - sale.commission)
        history.append(data)
    return history

