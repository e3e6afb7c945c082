# Overview: Read-only report computations over the sale ledger; recomputed on every call.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import extract, func

from batani.extensions import db
from batani.models import Customer, Product, Sale
from batani.time_utils import month_bounds, utcnow

"""
Report invariants (authoritative)

- Reports only read. Nothing here adds, changes or removes rows.
- Revenue is always gross: SUM(total_amount). Commission is summed on its
  own and never subtracted from revenue.
- "Current month" is the calendar month of as_of (server clock, UTC) unless
  the caller passes as_of explicitly.
"""

DEFAULT_LOW_STOCK_THRESHOLD = 10

ZERO = Decimal("0")


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def low_stock_threshold() -> int:
    return int(current_app.config.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD))


def dashboard_metrics(as_of: datetime | None = None) -> dict:
    as_of = as_of or utcnow()
    month_start, month_end = month_bounds(as_of)

    totals = db.session.query(
        func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        func.coalesce(func.sum(Sale.commission), 0).label("commission"),
        func.count(Sale.id).label("sales_count"),
        func.coalesce(func.sum(Sale.quantity), 0).label("items_sold"),
    ).one()

    monthly_revenue = db.session.query(
        func.coalesce(func.sum(Sale.total_amount), 0)
    ).filter(
        Sale.sale_date >= month_start,
        Sale.sale_date < month_end,
    ).scalar()

    total_customers = db.session.query(func.count(Customer.id)).scalar()
    low_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.stock_quantity < low_stock_threshold()
    ).scalar()

    return {
        "totalRevenue": _money(totals.revenue),
        "totalCommission": _money(totals.commission),
        "totalSalesCount": int(totals.sales_count or 0),
        "totalItemsSold": int(totals.items_sold or 0),
        "totalCustomers": int(total_customers or 0),
        "lowStockCount": int(low_stock_count or 0),
        "monthlyRevenue": _money(monthly_revenue),
    }


def monthly_report() -> list[dict]:
    """Revenue per (year, month) of sale_date, most recent month first."""
    year = extract("year", Sale.sale_date)
    month = extract("month", Sale.sale_date)

    rows = db.session.query(
        year.label("year"),
        month.label("month"),
        func.coalesce(func.sum(Sale.total_amount), 0).label("revenue"),
        func.coalesce(func.sum(Sale.commission), 0).label("commission"),
        func.count(Sale.id).label("sales_count"),
    ).group_by(year, month).order_by(year.desc(), month.desc()).all()

    return [
        {
            "month": f"{int(row.year):04d}-{int(row.month):02d}",
            "year": int(row.year),
            "monthNumber": int(row.month),
            "revenue": _money(row.revenue),
            "commission": _money(row.commission),
            "salesCount": int(row.sales_count or 0),
        }
        for row in rows
    ]


def customer_spending_report(limit: int | None = None) -> list[dict]:
    """
    Every customer with their gross spend and purchase count, biggest spender first.

    Ties keep customer list order (created_at, id); the sort is stable.
    Customers with no purchases are included with zero.
    """
    aggregates = {
        row.customer_id: (_money(row.spent), int(row.purchases or 0))
        for row in db.session.query(
            Sale.customer_id.label("customer_id"),
            func.coalesce(func.sum(Sale.total_amount), 0).label("spent"),
            func.count(Sale.id).label("purchases"),
        ).group_by(Sale.customer_id)
    }

    customers = db.session.query(Customer).order_by(Customer.created_at.asc(), Customer.id.asc()).all()

    report = []
    for customer in customers:
        spent, purchases = aggregates.get(customer.id, (ZERO, 0))
        report.append({
            "customer": customer.to_dict(),
            "totalSpent": spent,
            "purchaseCount": purchases,
        })

    report.sort(key=lambda entry: entry["totalSpent"], reverse=True)

    if limit is not None:
        report = report[: max(limit, 0)]
    return report


def low_stock_products(threshold: int | None = None) -> list[Product]:
    threshold = low_stock_threshold() if threshold is None else threshold
    return (
        db.session.query(Product)
        .filter(Product.stock_quantity < threshold)
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )
