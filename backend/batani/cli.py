# Overview: Flask CLI command groups for bootstrap, sales entry, and reports.

# backend/batani/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system seed
#   Add the two demo suppliers if no supplier exists yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Sales:
# - python -m flask sales record --product-number GT-100 --phone 255700000001 --name "Amina" --quantity 1 --price 25000 --commission 500
#   Record a sale from the terminal (same transaction as the API).
#
# Reports:
# - python -m flask reports dashboard
# - python -m flask reports monthly
# - python -m flask reports customers --limit 5

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Supplier
from .services import products_service, reporting_service, sales_service
from .services.stock_service import InsufficientStockError
from .validation import ValidationError, NotFoundError


DEMO_SUPPLIERS = [
    {
        "name": "Global Tech Solutions",
        "contact_person": "John Doe",
        "phone": "555-0101",
        "email": "john@globaltech.com",
        "address": "123 Innovation Dr, SF",
    },
    {
        "name": "Premium Parts Co.",
        "contact_person": "Jane Smith",
        "phone": "555-0202",
        "email": "sales@premiumparts.com",
        "address": "456 Industrial Way, NY",
    },
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    click.echo("START Initializing database...")
    db.create_all()
    click.echo(f"PASS Schema ready on {db.engine.dialect.name}")


@system_group.command('seed')
@with_appcontext
def seed_system():
    """Add demo suppliers to an empty supplier list."""
    from .services import supplier_service

    if db.session.query(Supplier).count():
        click.echo("SKIP Suppliers already present")
        return

    for row in DEMO_SUPPLIERS:
        supplier = supplier_service.create_supplier(row)
        click.echo(f"PASS Created supplier: {supplier['name']} (ID: {supplier['id']})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('sales')
def sales_group():
    """Sales entry commands."""


@sales_group.command('record')
@click.option('--product-number', required=True, help='Product number (any letter case)')
@click.option('--phone', required=True, help='Customer phone number')
@click.option('--name', 'customer_name', required=True, help='Customer full name (used only for new customers)')
@click.option('--quantity', type=int, default=1, show_default=True)
@click.option('--price', 'sold_price', required=True, help='Unit price sold at')
@click.option('--commission', default="0", show_default=True)
@with_appcontext
def record_sale_cli(product_number, phone, customer_name, quantity, sold_price, commission):
    """Record one sale line."""
    product = products_service.find_product_by_number(product_number)
    if product is None:
        raise click.ClickException(f"Product {product_number} not found")

    try:
        result = sales_service.record_sale(
            customer_name=customer_name,
            phone=phone,
            product_id=product["id"],
            quantity=quantity,
            sold_price=sold_price,
            commission=commission,
        )
    except InsufficientStockError as e:
        raise click.ClickException(f"{e} (available: {e.available})")
    except (ValidationError, NotFoundError) as e:
        raise click.ClickException(str(e))

    click.echo(
        f"PASS Sale {result.sale.id}: total {result.total_amount} "
        f"net {result.net_amount}"
        + (" (new customer)" if result.customer_created else "")
    )


@click.group('reports')
def reports_group():
    """Read-only report commands."""


@reports_group.command('dashboard')
@with_appcontext
def dashboard_cli():
    """Print dashboard metrics."""
    metrics = reporting_service.dashboard_metrics()
    width = max(len(k) for k in metrics)
    for key, value in metrics.items():
        click.echo(f"{key:<{width}}  {value}")


@reports_group.command('monthly')
@with_appcontext
def monthly_cli():
    """Print revenue per month, most recent first."""
    rows = reporting_service.monthly_report()
    if not rows:
        click.echo("No sales recorded.")
        return

    click.echo(f"{'Month':<10} {'Sales':>6} {'Revenue':>16} {'Commission':>14}")
    click.echo("-" * 50)
    for row in rows:
        click.echo(
            f"{row['month']:<10} {row['salesCount']:>6} {row['revenue']:>16} {row['commission']:>14}"
        )


@reports_group.command('customers')
@click.option('--limit', type=int, default=None, help='Only the top N customers')
@with_appcontext
def customers_cli(limit):
    """Print customers ranked by total spent."""
    rows = reporting_service.customer_spending_report(limit=limit)
    if not rows:
        click.echo("No customers found.")
        return

    click.echo(f"{'Customer':<30} {'Phone':<16} {'Purchases':>9} {'Total spent':>16}")
    click.echo("-" * 74)
    for row in rows:
        customer = row["customer"]
        click.echo(
            f"{customer['full_name']:<30} {customer['phone_number']:<16} "
            f"{row['purchaseCount']:>9} {row['totalSpent']:>16}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(reports_group)
