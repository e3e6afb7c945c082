# Overview: Flask API routes for supplier records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import supplier_service
from ..validation import ValidationError, ConflictError, NotFoundError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
def list_suppliers_route():
    """List suppliers, newest first."""
    suppliers = supplier_service.list_suppliers()
    return jsonify({
        "items": [s.to_dict() for s in suppliers],
        "count": len(suppliers),
    })


@suppliers_bp.post("")
def create_supplier_route():
    """
    Create a supplier.

    Request body:
    {
        "name": "Global Tech Solutions",   // required
        "contact_person": "...", "phone": "...", "email": "...", "address": "..."
    }
    """
    payload = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.create_supplier(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"supplier": supplier}), 201


@suppliers_bp.get("/<supplier_id>")
def get_supplier_route(supplier_id: str):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    products = supplier_service.products_for_supplier(supplier_id)
    return jsonify({
        "supplier": supplier.to_dict(),
        "products": [p.to_dict() for p in products],
    })


@suppliers_bp.put("/<supplier_id>")
def update_supplier_route(supplier_id: str):
    """Replace all supplier fields (omitted optional fields are cleared)."""
    payload = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.update_supplier(supplier_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"supplier": supplier}), 200


@suppliers_bp.delete("/<supplier_id>")
def delete_supplier_route(supplier_id: str):
    """Delete a supplier. Its products stay, with a dangling supplier_id."""
    if not supplier_service.delete_supplier(supplier_id):
        return jsonify({"error": "Supplier not found"}), 404
    return jsonify({"ok": True}), 200
