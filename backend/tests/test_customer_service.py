"""
Customer resolver and customer record tests.
"""

import pytest

from batani.extensions import db
from batani.models import Customer, Sale
from batani.services import customer_service, reporting_service
from batani.validation import ConflictError, NotFoundError, ValidationError


class TestResolveOrCreate:

    def test_resolving_twice_returns_same_customer(self, db_session):
        first = customer_service.resolve_or_create("255700", "Amina Juma")
        second = customer_service.resolve_or_create("255700", "Someone Else")

        assert first.id == second.id
        assert second.full_name == "Amina Juma"
        assert db.session.query(Customer).count() == 1

    def test_existing_customer_needs_no_name(self, db_session, customer):
        assert customer_service.resolve_or_create("255700").id == customer.id

    def test_new_customer_requires_name(self, db_session):
        with pytest.raises(ValidationError):
            customer_service.resolve_or_create("255701", "  ")
        assert db.session.query(Customer).count() == 0

    def test_blank_phone_rejected(self, db_session):
        with pytest.raises(ValidationError):
            customer_service.resolve_or_create("   ", "Amina Juma")

    def test_commit_false_leaves_transaction_open(self, db_session):
        customer = customer_service.resolve_or_create("255702", "Neema", commit=False)
        db.session.rollback()
        assert customer_service.find_by_phone("255702") is None


class TestCustomerRecords:

    def test_create_and_list_by_name(self, db_session):
        customer_service.create_customer({"full_name": "Zawadi", "phone_number": "1"})
        customer_service.create_customer({"full_name": "Baraka", "phone_number": "2"})

        names = [c.full_name for c in customer_service.list_customers()]
        assert names == ["Baraka", "Zawadi"]

    def test_create_ignores_client_id(self, db_session):
        row = customer_service.create_customer({"id": "chosen", "full_name": "Juma", "phone_number": "3"})
        assert row["id"] != "chosen"

    def test_duplicate_phone_conflicts(self, db_session, customer):
        with pytest.raises(ConflictError):
            customer_service.create_customer({"full_name": "Other", "phone_number": "255700"})

    def test_update_replaces_fields(self, db_session):
        row = customer_service.create_customer({
            "full_name": "Juma",
            "phone_number": "4",
            "email": "juma@example.test",
        })
        updated = customer_service.update_customer(row["id"], {"full_name": "Juma K.", "phone_number": "4"})
        assert updated["full_name"] == "Juma K."
        assert updated["email"] is None

    def test_update_missing_customer(self, db_session):
        with pytest.raises(NotFoundError):
            customer_service.update_customer("missing", {"full_name": "X", "phone_number": "5"})


class TestHistoryAndDeletion:

    def test_history_newest_first_with_product_names(self, db_session, make_product, sell):
        p = make_product(name="Laptop", stock_quantity=10)
        older = sell(p.id, quantity=1)
        newer = sell(p.id, quantity=2)
        sale = db.session.get(Sale, older.sale.id)
        sale.sale_date = sale.sale_date.replace(year=2020)
        db.session.commit()

        customer_id = newer.sale.customer_id
        history = customer_service.customer_history(customer_id)

        assert [h["id"] for h in history] == [newer.sale.id, older.sale.id]
        assert history[0]["product_name"] == "Laptop"
        assert history[0]["total_amount"] == "2000.00"

    def test_history_of_missing_customer(self, db_session):
        with pytest.raises(NotFoundError):
            customer_service.customer_history("missing")

    def test_deleting_customer_keeps_sales_in_revenue(self, db_session, product, sell):
        result = sell(product.id, quantity=2, price="1000")
        customer_id = result.sale.customer_id

        assert customer_service.delete_customer(customer_id) is True

        assert db.session.query(Sale).count() == 1
        metrics = reporting_service.dashboard_metrics()
        assert metrics["totalRevenue"] == 2000
        assert metrics["totalCustomers"] == 0

    def test_new_sale_after_delete_creates_fresh_customer(self, db_session, make_product, sell):
        p = make_product(stock_quantity=10)
        first = sell(p.id, name="Amina Juma")
        customer_service.delete_customer(first.sale.customer_id)

        second = sell(p.id, name="Amina J.")
        assert second.customer_created is True
        assert second.sale.customer_id != first.sale.customer_id
