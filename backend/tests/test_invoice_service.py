"""
Invoice assembly tests (service layer).

Verifies:
- All-or-nothing: one short product leaves every batch and table untouched
- Every shortfall is reported, in item order
- Discount is floored at zero
- Invoice numbers are sequential and not consumed by rejected invoices
"""

from decimal import Decimal

import pytest

from shopdesk.errors import InsufficientStockError
from shopdesk.models import Invoice, InvoiceLine
from shopdesk.services import invoice_service
from shopdesk.services.invoice_service import invoice_total
from shopdesk.validation import ValidationError

from conftest import batch_quantities, days, make_batch, make_product


def _item(product, quantity, unit_price="10.00"):
    return {"product_id": product.id, "quantity": quantity, "unit_price": unit_price}


class TestAtomicity:

    def test_shortfall_leaves_store_unchanged(self):
        soap = make_product("Soap")
        milk = make_product("Milk")
        bread = make_product("Bread")
        soap_batch = make_batch(soap, 10, expiry=days(30)).id
        milk_batch = make_batch(milk, 1, expiry=days(2)).id

        with pytest.raises(InsufficientStockError) as exc:
            invoice_service.create_invoice(
                items=[_item(soap, 4), _item(milk, 3), _item(bread, 1)],
                created_by=1,
            )

        assert exc.value.message == "Not enough stock for one or more products."
        assert exc.value.errors == [
            "Not enough stock for Milk. Requested 3, available 1.",
            "Not enough stock for Bread. Requested 1, available 0.",
        ]
        assert batch_quantities(soap_batch, milk_batch) == [10, 1]
        assert Invoice.query.count() == 0
        assert InvoiceLine.query.count() == 0

    def test_repeated_product_draws_from_remaining_stock(self, product):
        a = make_batch(product, 5, expiry=days(10)).id
        b = make_batch(product, 10, expiry=days(40)).id

        invoice_service.create_invoice(items=[_item(product, 4), _item(product, 4)])

        assert batch_quantities(a, b) == [0, 7]

    def test_repeated_product_over_total_is_short(self, product):
        a = make_batch(product, 5, expiry=days(10)).id
        b = make_batch(product, 10, expiry=days(40)).id

        with pytest.raises(InsufficientStockError) as exc:
            invoice_service.create_invoice(items=[_item(product, 10), _item(product, 10)])

        assert exc.value.errors == [
            "Not enough stock for Paracetamol. Requested 10, available 5."
        ]
        assert batch_quantities(a, b) == [5, 10]

    def test_validation_happens_before_storage(self, product):
        a = make_batch(product, 5).id

        with pytest.raises(ValidationError):
            invoice_service.create_invoice(items=[_item(product, 2), {"product_id": product.id}])

        assert batch_quantities(a) == [5]


class TestTotals:

    def test_totals_use_client_prices(self, product):
        make_batch(product, 10)

        header = invoice_service.create_invoice(
            items=[_item(product, 3, unit_price="4.10")],
            discount="1.30",
        )

        assert header["subtotal"] == "12.30"
        assert header["discount"] == "1.30"
        assert header["total_amount"] == "11.00"
        assert header["status"] == "PAID"

    def test_discount_larger_than_subtotal_floors_at_zero(self, product):
        make_batch(product, 10)

        header = invoice_service.create_invoice(
            items=[_item(product, 1, unit_price="100")],
            discount=150,
        )

        assert header["total_amount"] == "0.00"

    def test_invoice_total_helper(self):
        assert invoice_total(Decimal("100.00"), Decimal("150.00")) == Decimal("0.00")
        assert invoice_total(Decimal("100.00"), Decimal("0.01")) == Decimal("99.99")

    def test_missing_unit_price_counts_as_zero(self, product):
        make_batch(product, 10)

        header = invoice_service.create_invoice(
            items=[{"product_id": product.id, "quantity": 2}],
        )

        assert header["subtotal"] == "0.00"
        assert header["total_amount"] == "0.00"

    def test_walk_in_customer_and_today_by_default(self, product):
        make_batch(product, 10)

        header = invoice_service.create_invoice(items=[_item(product, 1)])
        invoice = invoice_service.get_invoice(header["id"])["invoice"]

        assert invoice["customer_name"] == "Walk-in Customer"
        assert invoice["invoice_date"] == days(0).isoformat()


class TestNumbering:

    def test_numbers_are_sequential(self, product):
        make_batch(product, 10)

        first = invoice_service.create_invoice(items=[_item(product, 1)])
        second = invoice_service.create_invoice(items=[_item(product, 1)])

        assert first["invoice_number"] == "INV00001"
        assert second["invoice_number"] == "INV00002"

    def test_rejected_invoice_does_not_consume_a_number(self, product):
        make_batch(product, 2)

        first = invoice_service.create_invoice(items=[_item(product, 1)])
        with pytest.raises(InsufficientStockError):
            invoice_service.create_invoice(items=[_item(product, 5)])
        with pytest.raises(ValidationError):
            invoice_service.create_invoice(items=[])
        second = invoice_service.create_invoice(items=[_item(product, 1)])

        assert [first["invoice_number"], second["invoice_number"]] == ["INV00001", "INV00002"]


class TestReads:

    def test_get_invoice_lines(self):
        soap = make_product("Soap")
        milk = make_product("Milk")
        make_batch(soap, 10)
        make_batch(milk, 10)

        header = invoice_service.create_invoice(
            customer_name="  Jane  ",
            items=[_item(soap, 2, "1.50"), _item(milk, 1, "0.99")],
        )
        result = invoice_service.get_invoice(header["id"])

        assert result["invoice"]["customer_name"] == "Jane"
        assert result["items"] == [
            {"product_id": soap.id, "product_name": "Soap", "quantity": 2,
             "unit_price": "1.50", "line_total": "3.00"},
            {"product_id": milk.id, "product_name": "Milk", "quantity": 1,
             "unit_price": "0.99", "line_total": "0.99"},
        ]

    def test_get_missing_invoice(self):
        assert invoice_service.get_invoice(123456) is None

    def test_list_by_day_and_range(self, product):
        make_batch(product, 10)
        invoice_service.create_invoice(items=[_item(product, 1)], invoice_date=days(-2).isoformat())
        invoice_service.create_invoice(items=[_item(product, 1)])

        assert len(invoice_service.list_invoices(on_date=days(0))) == 1
        assert len(invoice_service.list_invoices()) == 2
        assert len(invoice_service.list_invoices_in_range(days(-3), days(-1))) == 1
        assert len(invoice_service.list_invoices_in_range(date_from=days(-2))) == 2
