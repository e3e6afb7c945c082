from flask import Blueprint, jsonify, request

from batani.services import reporting_service
from batani.time_utils import parse_iso_datetime


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
def dashboard():
    as_of = request.args.get("as_of")
    try:
        as_of_dt = parse_iso_datetime(as_of) if as_of else None
    except ValueError:
        return jsonify({"error": "as_of must be an ISO-8601 datetime"}), 400

    return jsonify(reporting_service.dashboard_metrics(as_of=as_of_dt)), 200


@reports_bp.get("/monthly")
def monthly():
    rows = reporting_service.monthly_report()
    return jsonify({"rows": rows}), 200


@reports_bp.get("/customers")
def customer_spending():
    limit = request.args.get("limit", type=int)
    rows = reporting_service.customer_spending_report(limit=limit)
    return jsonify({"rows": rows}), 200


@reports_bp.get("/low-stock")
def low_stock():
    threshold = request.args.get("threshold", type=int)
    products = reporting_service.low_stock_products(threshold=threshold)
    return jsonify({
        "threshold": reporting_service.low_stock_threshold() if threshold is None else threshold,
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }), 200
