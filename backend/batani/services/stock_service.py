# Overview: Stock ledger; the only code that changes Product.stock_quantity.

from __future__ import annotations

import logging

from sqlalchemy import select, update

from ..extensions import db
from ..models import Product
from ..validation import NotFoundError, ValidationError, parse_int
from .concurrency import begin_write, keyed_locks, lock_for_update, product_key

"""
Stock invariants (authoritative)

- stock_quantity >= 0 for every product, after every committed transaction.
- A sale reads stock under a row lock and decrements it with a conditional
  UPDATE (... WHERE stock_quantity >= :qty); zero rows changed means another
  writer got there first and the sale is rejected, never clamped.
- check_and_reserve never commits. It runs inside the caller's transaction
  so the decrement and the sale row become visible together.
"""

logger = logging.getLogger(__name__)


class InsufficientStockError(Exception):
    """Raised when a product does not have enough stock for the requested quantity."""

    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_name = product_name
        self.available = available
        self.requested = requested
        self.details = {
            "product_name": product_name,
            "available": available,
            "requested": requested,
        }


def _require_quantity(quantity) -> int:
    quantity = parse_int("quantity", quantity)
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")
    return quantity


def get_product_for_update(product_id: str) -> Product:
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_quantity_on_hand(product_id: str) -> int:
    qty = db.session.execute(
        select(Product.stock_quantity).where(Product.id == product_id)
    ).scalar_one_or_none()
    if qty is None:
        raise NotFoundError(f"Product {product_id} not found")
    return int(qty)


def decrement(product_id: str, quantity: int) -> int:
    """
    Subtract quantity from stock in one conditional UPDATE and return the new level.

    Does not commit.
    """
    quantity = _require_quantity(quantity)

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        db.session.refresh(product, ["stock_quantity"])
        raise InsufficientStockError(product.name, product.stock_quantity, quantity)

    product = db.session.get(Product, product_id)
    db.session.expire(product, ["stock_quantity"])
    return product.stock_quantity


def check_and_reserve(product_id: str, quantity: int) -> Product:
    """
    Verify stock covers quantity, then decrement it.

    Raises:
        ValidationError: quantity is not a positive integer
        NotFoundError: no such product
        InsufficientStockError: stock_quantity < quantity (nothing changed)

    Does not commit; callers own the transaction.
    """
    quantity = _require_quantity(quantity)
    product = get_product_for_update(product_id)

    if product.stock_quantity < quantity:
        logger.warning(
            "Rejected stock reservation product_id=%s requested=%s available=%s",
            product_id, quantity, product.stock_quantity,
        )
        raise InsufficientStockError(product.name, product.stock_quantity, quantity)

    decrement(product_id, quantity)
    return product


def set_stock(product_id: str, quantity) -> Product:
    """Admin restock/correction: overwrite stock_quantity with a non-negative count."""
    quantity = parse_int("stock_quantity", quantity)
    if quantity < 0:
        raise ValidationError("stock_quantity must be >= 0")

    with keyed_locks().hold(product_key(product_id)):
        try:
            begin_write()
            product = get_product_for_update(product_id)
            previous = product.stock_quantity
            product.stock_quantity = quantity
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    logger.info("Stock set product_id=%s from=%s to=%s", product_id, previous, quantity)
    return product
