"""
Sales Service - one sale request, one transaction

WHY: A sale touches three collections (products, customers, sales). They
must change together or not at all, and two sales of the same product must
never both pass the stock check on the same units.

ORDER (each step is a precondition for the next):
1. validate input, including commission <= sold_price * quantity
2. look up the product
3. stock ledger check-and-decrement
4. resolve or create the customer by phone
5. total_amount = quantity * sold_price (commission is NOT subtracted)
6. append the sale row
7. commit once

Everything before the commit runs under the product and phone mutexes and
inside one DB transaction; any failure rolls the whole request back. There
are no retries: a rejected sale is resubmitted by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from ..extensions import db
from ..models import Sale
from ..models.common import money_str
from ..validation import ValidationError, enforce_rules_sale, parse_int, parse_money
from . import entity_store, stock_service
from .concurrency import begin_write, keyed_locks, phone_key, product_key
from .customer_service import _resolve_or_create_locked, normalize_name, normalize_phone
from batani.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleResult:
    sale: Sale
    total_amount: Decimal
    # Display only: never stored, never used by reports
    net_amount: Decimal
    customer_created: bool

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "totalAmount": money_str(self.total_amount),
            "netAmount": money_str(self.net_amount),
            "customerCreated": self.customer_created,
        }


def _require(value, name: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} is required")
    return value


def record_sale(
    *,
    customer_name: str,
    phone: str,
    product_id: str,
    quantity,
    sold_price,
    commission=0,
) -> SaleResult:
    """
    Record one sale line.

    Raises:
        ValidationError: missing field, bad number, or commission above sale value
        NotFoundError: product does not exist
        InsufficientStockError: stock_quantity < quantity

    State is unchanged whenever an exception is raised.
    """
    customer_name = normalize_name(customer_name)
    product_id = str(_require(product_id, "productId")).strip()
    quantity = parse_int("quantity", _require(quantity, "quantity"))
    sold_price = parse_money("soldPrice", _require(sold_price, "soldPrice"))
    commission = parse_money("commission", 0 if commission is None else commission)
    enforce_rules_sale(quantity=quantity, sold_price=sold_price, commission=commission)
    phone = normalize_phone(phone)

    with keyed_locks().hold(product_key(product_id), phone_key(phone)):
        try:
            begin_write()
            stock_service.check_and_reserve(product_id, quantity)

            customer, created = _resolve_or_create_locked(phone, customer_name)

            total_amount = sold_price * quantity
            now = utcnow()
            sale = entity_store.save(
                "sales",
                {
                    "customer_id": customer.id,
                    "product_id": product_id,
                    "quantity": quantity,
                    "sold_price": sold_price,
                    "commission": commission,
                    "total_amount": total_amount,
                    "sale_date": now,
                    "created_at": now,
                },
                commit=False,
            )

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    logger.info(
        "Recorded sale id=%s product_id=%s customer_id=%s quantity=%s total=%s commission=%s",
        sale.id, product_id, customer.id, quantity, total_amount, commission,
    )
    return SaleResult(
        sale=sale,
        total_amount=total_amount,
        net_amount=total_amount - commission,
        customer_created=created,
    )


def list_sales() -> list[dict]:
    """All sales, newest first, with customer and product names."""
    sales = (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    return entity_store.sales_with_relations(sales)


def get_sale(sale_id: str) -> dict:
    sale = entity_store.get_instance("sales", sale_id)
    return entity_store.sales_with_relations([sale])[0]
