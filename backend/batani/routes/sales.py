# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/batani/routes/sales.py
"""Sales API routes. Sales are append-only: there is no update or delete route."""

from flask import Blueprint, request, jsonify, current_app

from ..services import sales_service
from ..services.stock_service import InsufficientStockError
from ..validation import ValidationError, NotFoundError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
def list_sales_route():
    """All sales, newest first, with customer and product names."""
    items = sales_service.list_sales()
    return jsonify({"items": items, "count": len(items)})


@sales_bp.post("")
def record_sale_route():
    """
    Record a sale.

    Request body:
    {
        "customerName": "Amina Juma",
        "phone": "255700000001",
        "productId": "...",
        "quantity": 2,
        "soldPrice": "1000.00",
        "commission": "100.00"     // optional, defaults to 0
    }

    Returns 201 with the sale, totalAmount (gross) and netAmount
    (totalAmount - commission, display only).
    """
    data = request.get_json(silent=True) or {}

    try:
        result = sales_service.record_sale(
            customer_name=data.get("customerName"),
            phone=data.get("phone"),
            product_id=data.get("productId"),
            quantity=data.get("quantity"),
            sold_price=data.get("soldPrice"),
            commission=data.get("commission", 0),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, **result.to_dict()}), 201


@sales_bp.get("/<sale_id>")
def get_sale_route(sale_id: str):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"sale": sale}), 200
