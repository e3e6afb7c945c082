"""
Concurrency tests.

Keyed mutex behavior on its own, then threaded sales against a file-backed
SQLite database so BEGIN IMMEDIATE, the conditional stock UPDATE and
phone-keyed customer creation all see real contention.
"""

import threading
import time
from decimal import Decimal

import pytest

from batani import create_app
from batani.extensions import db
from batani.models import Customer, Product, Sale
from batani.services import sales_service
from batani.services.concurrency import EXTENSION_KEY, KeyedLocks, phone_key, product_key
from batani.services.stock_service import InsufficientStockError
from batani.validation import NotFoundError


class TestKeyedLocks:

    def test_same_key_serializes_critical_sections(self):
        locks = KeyedLocks()
        stock = {"qty": 5}
        accepted = []

        def reserve():
            with locks.hold(product_key("p1")):
                available = stock["qty"]
                time.sleep(0.01)
                if available >= 1:
                    stock["qty"] = available - 1
                    accepted.append(1)

        threads = [threading.Thread(target=reserve) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert stock["qty"] == 0
        assert len(accepted) == 5
        assert len(locks) == 0

    def test_hold_is_reentrant(self):
        locks = KeyedLocks()
        with locks.hold(product_key("p1")):
            with locks.hold(product_key("p1"), phone_key("255700")):
                assert len(locks) == 2
            assert len(locks) == 1
        assert len(locks) == 0

    def test_opposite_key_order_does_not_deadlock(self):
        locks = KeyedLocks()
        done = []

        def worker(keys):
            for _ in range(50):
                with locks.hold(*keys):
                    pass
            done.append(True)

        a = threading.Thread(target=worker, args=([product_key("p1"), phone_key("1")],))
        b = threading.Thread(target=worker, args=([phone_key("1"), product_key("p1")],))
        a.start()
        b.start()
        a.join(timeout=5)
        b.join(timeout=5)

        assert done == [True, True]
        assert len(locks) == 0

    def test_none_keys_are_ignored(self):
        locks = KeyedLocks()
        with locks.hold(None, product_key("p1")):
            assert len(locks) == 1

    def test_registry_drops_keys_after_an_exception(self):
        locks = KeyedLocks()
        with pytest.raises(RuntimeError):
            with locks.hold(product_key("p1"), phone_key("1")):
                raise RuntimeError("boom")
        assert len(locks) == 0

    def test_registry_is_per_app(self, app):
        assert isinstance(app.extensions[EXTENSION_KEY], KeyedLocks)

    def test_rejected_sales_leave_no_locks_behind(self, app, db_session, product):
        locks = app.extensions[EXTENSION_KEY]

        for n in range(50):
            with pytest.raises(NotFoundError):
                sales_service.record_sale(
                    customer_name="Ghost",
                    phone=f"2559{n:05d}",
                    product_id=f"missing-{n}",
                    quantity=1,
                    sold_price="1000",
                )
            with pytest.raises(InsufficientStockError):
                sales_service.record_sale(
                    customer_name="Ghost",
                    phone=f"2558{n:05d}",
                    product_id=product.id,
                    quantity=99,
                    sold_price="1000",
                )

        assert len(locks) == 0


@pytest.fixture
def file_app(tmp_path):
    """A second app on a file-backed SQLite database, shared by worker threads."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.db'}",
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def _seed_product(app, stock_quantity):
    with app.app_context():
        product = Product(
            product_number="RACE-1",
            name="Race Router",
            stock_quantity=stock_quantity,
            price=Decimal("1000.00"),
        )
        db.session.add(product)
        db.session.commit()
        product_id = product.id
        db.session.remove()
    return product_id


def _run_buyers(app, product_id, phones):
    """Fire one sale per phone entry from its own thread; return outcomes."""
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(phones))

    def worker(phone):
        with app.app_context():
            try:
                barrier.wait(timeout=10)
                sales_service.record_sale(
                    customer_name=f"Buyer {phone}",
                    phone=phone,
                    product_id=product_id,
                    quantity=1,
                    sold_price="1000",
                )
                outcome = "sold"
            except InsufficientStockError:
                outcome = "insufficient"
            except Exception as exc:
                outcome = exc
            finally:
                db.session.remove()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker, args=(phone,)) for phone in phones]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    return results


class TestConcurrentSales:

    def test_concurrent_sales_never_oversell(self, file_app):
        product_id = _seed_product(file_app, stock_quantity=5)
        phones = ["255701", "255702", "255703"] * 7

        results = _run_buyers(file_app, product_id, phones)

        errors = [r for r in results if r not in ("sold", "insufficient")]
        assert errors == []
        assert results.count("sold") == 5
        assert results.count("insufficient") == len(phones) - 5

        with file_app.app_context():
            assert db.session.get(Product, product_id).stock_quantity == 0
            sales = db.session.query(Sale).all()
            customers = db.session.query(Customer).all()

            assert len(sales) == 5
            assert len(customers) == len({c.phone_number for c in customers})
            assert {s.customer_id for s in sales} == {c.id for c in customers}
            db.session.remove()

        assert len(file_app.extensions[EXTENSION_KEY]) == 0

    def test_one_customer_per_phone_under_contention(self, file_app):
        product_id = _seed_product(file_app, stock_quantity=100)
        phones = ["255711"] * 8 + ["255712"] * 8

        results = _run_buyers(file_app, product_id, phones)

        assert results.count("sold") == 16

        with file_app.app_context():
            customers = db.session.query(Customer).order_by(Customer.phone_number).all()
            assert [c.phone_number for c in customers] == ["255711", "255712"]
            assert db.session.get(Product, product_id).stock_quantity == 84
            assert db.session.query(Sale).count() == 16
            db.session.remove()
