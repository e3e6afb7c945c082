"""
Pytest fixtures for the Batani Store backend tests.

Provides an in-memory application, a per-test clean database, and small
factories for suppliers, products and customers.
"""

from decimal import Decimal

import pytest
from batani import create_app
from batani.extensions import db
from batani.models import Customer, Product, Supplier


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def supplier(db_session):
    """Create a supplier."""
    supplier = Supplier(
        name="Global Tech Solutions",
        contact_person="John Doe",
        phone="555-0101",
        email="john@globaltech.com",
        address="123 Innovation Dr, SF",
    )
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(product_number="P-1", stock_quantity=5, price="1000")."""
    counter = {"n": 0}

    def _make(product_number=None, name=None, stock_quantity=5, price="1000.00", supplier_id=None):
        counter["n"] += 1
        product = Product(
            product_number=product_number or f"PRD-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            stock_quantity=stock_quantity,
            price=Decimal(price),
            supplier_id=supplier_id,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product(make_product, supplier):
    """Product with 5 units in stock priced 1000.00."""
    return make_product(product_number="GT-100", name="Wireless Router", supplier_id=supplier.id)


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(full_name="Amina Juma", phone_number="255700")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def sell(db_session):
    """Helper to record a sale with sensible defaults."""
    from batani.services import sales_service

    def _sell(product_id, *, phone="255700", name="Amina Juma", quantity=1, price="1000", commission="0"):
        return sales_service.record_sale(
            customer_name=name,
            phone=phone,
            product_id=product_id,
            quantity=quantity,
            sold_price=price,
            commission=commission,
        )

    return _sell
