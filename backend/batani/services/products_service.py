# backend/batani/services/products_service.py
"""
Products Service

- Reads return products joined with their supplier (or None) and images,
  assembled at read time by the entity store.
- product_number search is a case-insensitive exact match and returns at
  most one product.
- description is stored as given; it may come from an external text
  generator, the service never calls one.
- Images are attached as URLs. Deleting a product deletes its images.
"""
from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import Product
from ..validation import ValidationError
from . import entity_store

logger = logging.getLogger(__name__)


def _image_urls(images) -> list[str]:
    if images is None:
        return []
    if not isinstance(images, list):
        raise ValidationError("images must be a list of URLs")
    urls = []
    for url in images:
        if not isinstance(url, str) or not url.strip():
            raise ValidationError("images must be a list of non-empty URLs")
        urls.append(url.strip())
    return urls


def list_products() -> list[dict]:
    """All products, newest first, with supplier and images."""
    products = (
        db.session.query(Product)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    return entity_store.products_with_relations(products)


def get_product(product_id: str) -> dict:
    product = entity_store.get_instance("products", product_id)
    return entity_store.products_with_relations([product])[0]


def find_product_by_number(product_number: str) -> dict | None:
    """Case-insensitive exact match on product_number; None when absent."""
    if product_number is None:
        return None
    product_number = product_number.strip()
    if not product_number:
        return None
    product = (
        db.session.query(Product)
        .filter(func.lower(Product.product_number) == product_number.lower())
        .first()
    )
    if product is None:
        return None
    return entity_store.products_with_relations([product])[0]


def _save_with_images(row: dict, images) -> dict:
    urls = _image_urls(images)
    try:
        product = entity_store.save("products", row, commit=False)
        for url in urls:
            entity_store.save(
                "product_images",
                {"product_id": product.id, "image_url": url},
                commit=False,
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return entity_store.products_with_relations([product])[0]


def create_product(payload: dict) -> dict:
    """
    Create a product from a validated payload.

    Optional "images" is a list of URLs attached to the new product.

    Raises:
        ValidationError: bad or missing fields
        ConflictError: product_number already used (any letter case)
    """
    payload = dict(payload or {})
    images = payload.pop("images", None)
    payload.pop("id", None)
    created = _save_with_images(payload, images)
    logger.info("Created product id=%s product_number=%s", created["id"], created["product_number"])
    return created


def update_product(product_id: str, payload: dict) -> dict:
    """
    Replace a product's fields. Images listed in "images" are appended;
    existing images are kept.
    """
    entity_store.get_instance("products", product_id)
    payload = dict(payload or {})
    images = payload.pop("images", None)
    payload["id"] = product_id
    return _save_with_images(payload, images)


def add_images(product_id: str, images) -> dict:
    urls = _image_urls(images)
    if not urls:
        raise ValidationError("images must contain at least one URL")
    entity_store.get_instance("products", product_id)
    try:
        for url in urls:
            entity_store.save("product_images", {"product_id": product_id, "image_url": url}, commit=False)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return get_product(product_id)


def delete_product(product_id: str) -> bool:
    """Delete a product and all of its images."""
    return entity_store.delete("products", product_id)
