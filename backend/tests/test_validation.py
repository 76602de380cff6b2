"""
Unit tests for input normalization: money, calendar dates, invoice requests.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from shopdesk.money import money_str, to_money
from shopdesk.time_utils import parse_calendar_date, to_utc_z
from shopdesk.validation import (
    ValidationError,
    validate_invoice_request,
    validate_write_off_request,
)

from conftest import days


class TestMoney:

    def test_float_keeps_written_value(self):
        assert to_money(19.99) == Decimal("19.99")

    def test_rounds_half_up_to_cents(self):
        assert to_money("2.345") == Decimal("2.35")

    def test_none_is_zero(self):
        assert to_money(None) == Decimal("0.00")

    @pytest.mark.parametrize("value", [True, "abc", "NaN", "Infinity"])
    def test_rejects_non_amounts(self, value):
        with pytest.raises(ValueError):
            to_money(value)

    def test_money_str(self):
        assert money_str(Decimal("5")) == "5.00"
        assert money_str(None) is None


class TestCalendarDates:

    def test_plain_day(self):
        assert parse_calendar_date("2026-02-28") == date(2026, 2, 28)

    @pytest.mark.parametrize("value", [
        "2026-02-28T23:59:59",
        "2026-02-28T23:59:59Z",
        "2026-02-28T23:59:59-08:00",
        "2026-02-28 06:00:00+09:00",
    ])
    def test_timestamp_keeps_written_day(self, value):
        assert parse_calendar_date(value) == date(2026, 2, 28)

    def test_datetime_value(self):
        assert parse_calendar_date(datetime(2026, 2, 28, 23, 0)) == date(2026, 2, 28)

    def test_blank(self):
        assert parse_calendar_date(None) is None
        assert parse_calendar_date("  ") is None

    @pytest.mark.parametrize("value", ["28/02/2026", "2026-02-30", 20260228])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_calendar_date(value)

    def test_to_utc_z(self):
        assert to_utc_z(datetime(2026, 3, 1, 10, 0, 0, 123)) == "2026-03-01T10:00:00Z"


class TestInvoiceRequest:

    def test_defaults(self, app):
        request = validate_invoice_request(items=[{"product_id": 1, "quantity": "2"}])

        assert request.customer_name is None
        assert request.invoice_date == days(0)
        assert request.discount == Decimal("0.00")
        assert request.items[0].quantity == 2
        assert request.items[0].unit_price == Decimal("0.00")

    def test_line_total(self, app):
        request = validate_invoice_request(items=[{"product_id": 1, "quantity": 3, "unit_price": "0.10"}])

        assert request.items[0].line_total == Decimal("0.30")

    @pytest.mark.parametrize("items", [None, [], "abc", {}])
    def test_items_required(self, app, items):
        with pytest.raises(ValidationError, match="Invoice items are required"):
            validate_invoice_request(items=items)

    @pytest.mark.parametrize("item", [
        "not-an-object",
        {"product_id": 0, "quantity": 1},
        {"product_id": 1, "quantity": -1},
        {"product_id": 1, "quantity": 2.5},
        {"product_id": "1e3", "quantity": 1},
        {"product_id": 1, "quantity": 1, "unit_price": -5},
        {"product_id": 1, "quantity": 1, "unit_price": "free"},
    ])
    def test_bad_items(self, app, item):
        with pytest.raises(ValidationError, match=r"Invalid item data \(item 1\)"):
            validate_invoice_request(items=[item])

    def test_discount_checked_first(self, app):
        with pytest.raises(ValidationError, match="Discount cannot be negative."):
            validate_invoice_request(discount="-0.01", items=None)

    def test_future_date(self, app):
        with pytest.raises(ValidationError, match="Invoice date cannot be in the future."):
            validate_invoice_request(invoice_date=days(1).isoformat(), items=[{"product_id": 1, "quantity": 1}])

    def test_customer_name_too_long(self, app):
        with pytest.raises(ValidationError):
            validate_invoice_request(customer_name="x" * 256, items=[{"product_id": 1, "quantity": 1}])


class TestWriteOffRequest:

    def test_defaults(self):
        request = validate_write_off_request(batch_id="4", quantity=2, reason="  ", notes="")

        assert request.batch_id == 4
        assert request.quantity == 2
        assert request.reason == "EXPIRED"
        assert request.notes is None

    def test_reason_too_long(self):
        with pytest.raises(ValidationError):
            validate_write_off_request(batch_id=1, quantity=1, reason="x" * 65)


class TestIntegerRange:

    def test_bigint_bounds(self, app):
        request = validate_invoice_request(items=[{"product_id": 2**63 - 1, "quantity": 1}])
        assert request.items[0].product_id == 2**63 - 1

        with pytest.raises(ValidationError, match="product_id is out of range"):
            validate_invoice_request(items=[{"product_id": 2**63, "quantity": 1}])

    def test_write_off_ids_out_of_range(self):
        with pytest.raises(ValidationError, match="batch_id and a positive quantity are required"):
            validate_write_off_request(batch_id=2**70, quantity=1)
