"""
Invoice service - one-shot sales invoices backed by FEFO stock deduction.

An invoice is created together with its lines and all stock deductions in a
single transaction. Every requested item is checked before the decision is
made; if any product is short the whole unit of work is rolled back and all
shortfall messages are reported together.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..errors import InsufficientStockError
from ..models import Invoice, InvoiceLine
from ..money import ZERO, money_str, to_money
from ..validation import InvoiceRequest, validate_invoice_request
from .concurrency import begin_write_transaction, run_with_retry
from .document_service import INVOICE, next_document_number
from .stock_service import allocate_fefo

STATUS_PAID = "PAID"


def invoice_total(subtotal: Decimal, discount: Decimal) -> Decimal:
    """Discount is applied to the subtotal; the result is floored at zero."""
    return max(ZERO, to_money(subtotal - discount))


def _create_invoice_locked(request: InvoiceRequest, created_by: int | None) -> tuple[Invoice, Decimal]:
    shortfalls: list[str] = []
    subtotal = ZERO

    for item in request.items:
        allocation = allocate_fefo(item.product_id, item.quantity)
        if allocation.is_short:
            shortfalls.append(allocation.shortfall_message)
            continue
        subtotal += item.line_total

    if shortfalls:
        raise InsufficientStockError(shortfalls)

    config = current_app.config
    invoice_number = next_document_number(
        document_type=INVOICE,
        prefix=config["INVOICE_NUMBER_PREFIX"],
        pad=config["INVOICE_NUMBER_PAD"],
    )

    invoice = Invoice(
        invoice_number=invoice_number,
        customer_name=request.customer_name or config["WALK_IN_CUSTOMER"],
        invoice_date=request.invoice_date,
        subtotal=subtotal,
        discount=request.discount,
        total_amount=invoice_total(subtotal, request.discount),
        status=STATUS_PAID,
        created_by=created_by,
    )
    for item in request.items:
        invoice.lines.append(
            InvoiceLine(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
        )

    db.session.add(invoice)
    db.session.flush()
    return invoice, subtotal


def create_invoice(
    *,
    customer_name=None,
    invoice_date=None,
    discount=None,
    items=None,
    created_by: int | None = None,
) -> dict:
    """
    Create a PAID invoice and deduct its stock FEFO-style.

    Raises ValidationError before touching storage for malformed input and
    InsufficientStockError (with one message per short product) when stock
    does not cover the request. Both leave the store unchanged.

    Returns the header: id, invoice_number, subtotal, discount, total_amount, status.
    """
    request = validate_invoice_request(
        customer_name=customer_name,
        invoice_date=invoice_date,
        discount=discount,
        items=items,
    )

    def _op():
        begin_write_transaction()
        invoice, subtotal = _create_invoice_locked(request, created_by)
        db.session.commit()
        return {
            "id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "subtotal": money_str(subtotal),
            "discount": money_str(invoice.discount),
            "total_amount": money_str(invoice.total_amount),
            "status": invoice.status,
        }

    return run_with_retry(_op)


def get_invoice(invoice_id: int) -> dict | None:
    """Header plus line items, or None when the invoice does not exist."""
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        return None
    return {
        "invoice": invoice.to_dict(),
        "items": [line.to_dict() for line in invoice.lines],
    }


def list_invoices(on_date: date | None = None) -> list[Invoice]:
    q = Invoice.query
    if on_date is not None:
        q = q.filter(Invoice.invoice_date == on_date).order_by(
            Invoice.created_at.desc(), Invoice.id.desc()
        )
    else:
        q = q.order_by(Invoice.invoice_date.desc(), Invoice.id.desc())
    return q.all()


def list_invoices_in_range(date_from: date | None = None, date_to: date | None = None) -> list[Invoice]:
    q = Invoice.query
    if date_from is not None:
        q = q.filter(Invoice.invoice_date >= date_from)
    if date_to is not None:
        q = q.filter(Invoice.invoice_date <= date_to)
    return q.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()
