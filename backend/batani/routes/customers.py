# Overview: Flask API routes for customer records and purchase history.

from flask import Blueprint, request, jsonify, current_app

from ..services import customer_service
from ..validation import ValidationError, ConflictError, NotFoundError


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers_route():
    """List customers ordered by full name."""
    customers = customer_service.list_customers()
    return jsonify({
        "items": [c.to_dict() for c in customers],
        "count": len(customers),
    })


@customers_bp.post("")
def create_customer_route():
    """
    Create a customer explicitly (sales also create customers on first sight).

    Request body:
    {
        "full_name": "Amina Juma",      // required
        "phone_number": "255700000001", // required, unique
        "email": "...", "address": "..."
    }
    """
    payload = request.get_json(silent=True) or {}
    try:
        customer = customer_service.create_customer(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer}), 201


@customers_bp.get("/<customer_id>")
def get_customer_route(customer_id: str):
    try:
        customer = customer_service.get_customer(customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"customer": customer.to_dict()})


@customers_bp.put("/<customer_id>")
def update_customer_route(customer_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        customer = customer_service.update_customer(customer_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer}), 200


@customers_bp.delete("/<customer_id>")
def delete_customer_route(customer_id: str):
    """Remove the profile. Purchase history stays in the sales ledger."""
    if not customer_service.delete_customer(customer_id):
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"ok": True}), 200


@customers_bp.get("/<customer_id>/history")
def customer_history_route(customer_id: str):
    """Sales for one customer with product names, newest first."""
    try:
        history = customer_service.customer_history(customer_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"items": history, "count": len(history)})
