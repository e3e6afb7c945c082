"""
Sale transaction tests.

Verifies:
- Stock never goes negative and a rejected sale changes nothing
- Commission is validated against gross line value and never reduces total_amount
- Customers are resolved by phone and created only once
"""

from decimal import Decimal

import pytest

from batani.extensions import db
from batani.models import Customer, Product, Sale
from batani.services import sales_service
from batani.services.stock_service import InsufficientStockError
from batani.validation import NotFoundError, ValidationError


def _counts():
    return (
        db.session.query(Sale).count(),
        db.session.query(Customer).count(),
    )


class TestStockRules:

    def test_sell_entire_stock_then_reject_next(self, db_session, product, sell):
        """stock=5, sell 5 -> 0; selling 1 more fails and stock stays 0."""
        sell(product.id, quantity=5)
        assert db.session.get(Product, product.id).stock_quantity == 0

        with pytest.raises(InsufficientStockError) as exc:
            sell(product.id, quantity=1)

        assert exc.value.product_name == "Wireless Router"
        assert exc.value.available == 0
        assert exc.value.requested == 1
        assert db.session.get(Product, product.id).stock_quantity == 0
        assert db.session.query(Sale).count() == 1

    def test_quantity_above_stock_leaves_state_unchanged(self, db_session, product, sell):
        before = _counts()

        with pytest.raises(InsufficientStockError):
            sell(product.id, quantity=6, phone="255999", name="New Person")

        assert _counts() == before
        assert db.session.get(Product, product.id).stock_quantity == 5

    def test_quantity_equal_to_stock_succeeds(self, db_session, make_product, sell):
        p = make_product(stock_quantity=3)
        sell(p.id, quantity=3)
        assert db.session.get(Product, p.id).stock_quantity == 0

    def test_many_sales_never_drive_stock_negative(self, db_session, make_product, sell):
        p = make_product(stock_quantity=7)
        accepted = 0
        for qty in [2, 3, 4, 1, 1, 5]:
            try:
                sell(p.id, quantity=qty)
                accepted += qty
            except InsufficientStockError:
                pass
            assert db.session.get(Product, p.id).stock_quantity >= 0

        assert accepted == 7
        assert db.session.get(Product, p.id).stock_quantity == 0

    def test_unknown_product_is_not_found(self, db_session, sell):
        before = _counts()
        with pytest.raises(NotFoundError):
            sell("does-not-exist", quantity=1, phone="255111", name="Ghost")
        assert _counts() == before


class TestCommission:

    def test_commission_above_sale_value_rejected(self, db_session, product, sell):
        """soldPrice=1000, quantity=2, commission=2500 -> ValidationError (2500 > 2000)."""
        before = _counts()

        with pytest.raises(ValidationError):
            sell(product.id, quantity=2, price="1000", commission="2500")

        assert _counts() == before
        assert db.session.get(Product, product.id).stock_quantity == 5

    def test_commission_equal_to_sale_value_allowed(self, db_session, product, sell):
        result = sell(product.id, quantity=2, price="1000", commission="2000")
        assert result.total_amount == Decimal("2000")
        assert result.net_amount == Decimal("0")

    def test_commission_is_not_subtracted_from_total(self, db_session, product, sell):
        result = sell(product.id, quantity=2, price="1000", commission="150")

        sale = db.session.get(Sale, result.sale.id)
        assert sale.total_amount == Decimal("2000.00")
        assert sale.commission == Decimal("150.00")
        assert result.net_amount == Decimal("1850")

    def test_negative_commission_rejected(self, db_session, product, sell):
        with pytest.raises(ValidationError):
            sell(product.id, commission="-1")

    def test_missing_commission_defaults_to_zero(self, db_session, product):
        result = sales_service.record_sale(
            customer_name="Amina Juma",
            phone="255700",
            product_id=product.id,
            quantity=1,
            sold_price="1000",
            commission=None,
        )
        assert db.session.get(Sale, result.sale.id).commission == Decimal("0")


class TestTotals:

    def test_total_is_quantity_times_sold_price(self, db_session, product, sell):
        result = sell(product.id, quantity=3, price="0.10")
        assert result.total_amount == Decimal("0.30")
        assert db.session.get(Sale, result.sale.id).total_amount == Decimal("0.30")

    def test_sold_price_may_differ_from_list_price(self, db_session, product, sell):
        result = sell(product.id, quantity=1, price="850.50")
        sale = db.session.get(Sale, result.sale.id)
        assert sale.sold_price == Decimal("850.50")
        assert db.session.get(Product, product.id).price == Decimal("1000.00")

    def test_sale_dates_are_set(self, db_session, product, sell):
        result = sell(product.id)
        sale = db.session.get(Sale, result.sale.id)
        assert sale.sale_date is not None
        assert sale.created_at is not None


class TestCustomerResolution:

    def test_first_sale_creates_customer(self, db_session, product, sell):
        result = sell(product.id, phone="255711", name="Baraka Mushi")
        assert result.customer_created is True

        customer = db.session.query(Customer).filter_by(phone_number="255711").one()
        assert customer.full_name == "Baraka Mushi"
        assert result.sale.customer_id == customer.id

    def test_repeat_phone_reuses_customer_and_keeps_first_name(self, db_session, make_product, sell):
        p = make_product(stock_quantity=10)
        first = sell(p.id, phone="255700", name="Amina Juma")
        second = sell(p.id, phone="255700", name="AMINA J.")

        assert second.customer_created is False
        assert first.sale.customer_id == second.sale.customer_id
        assert db.session.query(Customer).count() == 1
        assert db.session.query(Customer).one().full_name == "Amina Juma"

    def test_phone_is_stripped(self, db_session, make_product, sell):
        p = make_product(stock_quantity=10)
        sell(p.id, phone=" 255700 ")
        sell(p.id, phone="255700")
        assert db.session.query(Customer).count() == 1


class TestValidation:

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_name": ""},
            {"customer_name": None},
            {"customer_name": "A" * 256},
            {"phone": "   "},
            {"product_id": None},
            {"quantity": 0},
            {"quantity": -2},
            {"quantity": 1.5},
            {"quantity": None},
            {"sold_price": "abc"},
            {"sold_price": "-5"},
            {"sold_price": "10.005"},
        ],
    )
    def test_bad_input_rejected_without_changes(self, db_session, product, overrides):
        kwargs = {
            "customer_name": "Amina Juma",
            "phone": "255700",
            "product_id": product.id,
            "quantity": 1,
            "sold_price": "1000",
            "commission": "0",
        }
        kwargs.update(overrides)
        before = _counts()

        with pytest.raises(ValidationError):
            sales_service.record_sale(**kwargs)

        assert _counts() == before
        assert db.session.get(Product, product.id).stock_quantity == 5


class TestListing:

    def test_list_sales_newest_first_with_names(self, db_session, make_product, sell):
        p = make_product(name="Laptop", stock_quantity=10)
        first = sell(p.id, quantity=1)
        second = sell(p.id, quantity=2)

        # Same-second timestamps are possible; force an order
        db.session.get(Sale, first.sale.id).sale_date = db.session.get(Sale, second.sale.id).sale_date.replace(year=2020)
        db.session.commit()

        rows = sales_service.list_sales()
        assert [r["id"] for r in rows] == [second.sale.id, first.sale.id]
        assert rows[0]["product_name"] == "Laptop"
        assert rows[0]["customer_name"] == "Amina Juma"

    def test_get_sale_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.get_sale("missing")


def test_longest_allowed_customer_name_is_stored(db_session, product, sell):
    result = sell(product.id, phone="255799", name="A" * 255)
    assert db.session.get(Customer, result.sale.customer_id).full_name == "A" * 255
