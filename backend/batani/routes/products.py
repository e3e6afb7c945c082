# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/batani/routes/products.py
"""
Product management routes.

Products are returned joined with their supplier and images. Create and
update accept an optional "images" list of URLs and an optional
"description" (which may have been produced by an external generator).
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import products_service, stock_service
from ..validation import ValidationError, ConflictError, NotFoundError


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """List all products, newest first, with supplier and images."""
    items = products_service.list_products()
    return jsonify({"items": items, "count": len(items)})


@products_bp.get("/search/<path:product_number>")
def search_product_route(product_number: str):
    """Case-insensitive exact lookup by product number."""
    product = products_service.find_product_by_number(product_number)
    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product}), 200


@products_bp.get("/<product_id>")
def get_product_route(product_id: str):
    try:
        return jsonify({"product": products_service.get_product(product_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@products_bp.post("")
def create_product_route():
    """
    Create a new product.

    Request body:
    {
        "product_number": "GT-100",   // required, unique ignoring case
        "name": "Router",             // required
        "description": "...",
        "supplier_id": "...",
        "stock_quantity": 5,
        "price": "25000.00",
        "images": ["https://..."]
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        created = products_service.create_product(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": created}), 201


@products_bp.put("/<product_id>")
def update_product_route(product_id: str):
    """Replace a product's fields; any "images" URLs are appended."""
    payload = request.get_json(silent=True) or {}

    try:
        updated = products_service.update_product(product_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": updated}), 200


@products_bp.post("/<product_id>/images")
def add_images_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        product = products_service.add_images(product_id, payload.get("images"))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add product images")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": product}), 201


@products_bp.put("/<product_id>/stock")
def set_stock_route(product_id: str):
    """
    Admin restock or correction.

    Request body:
    {
        "stock_quantity": 40   // required, >= 0
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        product = stock_service.set_stock(product_id, payload.get("stock_quantity"))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to set stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": product.to_dict()}), 200


@products_bp.delete("/<product_id>")
def delete_product_route(product_id: str):
    """Delete a product and its images."""
    if not products_service.delete_product(product_id):
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"ok": True}), 200
