# Overview: Service-layer operations for stock batches (stock in) and supplier payables.

"""
Supplier invoice numbering

Batches carry the number of the supplier invoice they arrived on. When the
user does not type one, SUPINV-style numbers are handed out from the
SUPPLIER_INVOICE document sequence. The sequence never hands out a number at
or below the trailing digits of the most recently created batch's number, so
numbers typed by hand (e.g. "SUPINV00041") push the series forward.

Known gap: supplier_invoice_no is not unique. Two batches can share a number
when one is typed by hand, and the GET peek is advisory only.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from flask import current_app
from sqlalchemy import case, func, or_

from ..extensions import db
from ..errors import NotFoundError, ProductNotFoundError
from ..models import Product, StockBatch, Supplier
from ..money import money_str, to_money
from ..time_utils import to_utc_z, utcnow
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_batch,
    validate_payload,
)
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .document_service import SUPPLIER_INVOICE, next_document_number, peek_document_number

_TRAILING_DIGITS = re.compile(r"(\d+)$")

BATCH_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_id",
        "batch_code",
        "expiry_date",
        "quantity",
        "unit_cost",
        "supplier_id",
        "supplier_invoice_no",
    },
    required_on_create={"product_id", "batch_code", "quantity", "unit_cost"},
)


def _latest_supplier_invoice_suffix() -> int:
    last = (
        db.session.query(StockBatch.supplier_invoice_no)
        .filter(StockBatch.supplier_invoice_no.isnot(None))
        .order_by(StockBatch.created_at.desc(), StockBatch.id.desc())
        .limit(1)
        .scalar()
    )
    if not last:
        return 0
    match = _TRAILING_DIGITS.search(last)
    return int(match.group(1)) if match else 0


def next_supplier_invoice_number() -> str:
    """Advisory preview of the next auto-generated supplier invoice number."""
    config = current_app.config
    return peek_document_number(
        document_type=SUPPLIER_INVOICE,
        prefix=config["SUPPLIER_INVOICE_PREFIX"],
        pad=config["SUPPLIER_INVOICE_PAD"],
        minimum=_latest_supplier_invoice_suffix() + 1,
    )


def _allocate_supplier_invoice_number() -> str:
    config = current_app.config
    return next_document_number(
        document_type=SUPPLIER_INVOICE,
        prefix=config["SUPPLIER_INVOICE_PREFIX"],
        pad=config["SUPPLIER_INVOICE_PAD"],
        minimum=_latest_supplier_invoice_suffix() + 1,
    )


def create_batch(payload: dict) -> StockBatch:
    """
    Receive a new batch of stock.

    payload keys: product_id, batch_code, quantity, unit_cost (required);
    expiry_date, supplier_id, supplier_invoice_no (optional).
    """
    patch = validate_payload(
        model=StockBatch,
        payload=payload,
        policy=BATCH_CREATE_POLICY,
        partial=False,
    )
    enforce_rules_batch(patch)

    def _op():
        begin_write_transaction()
        if db.session.get(Product, patch["product_id"]) is None:
            raise ProductNotFoundError(patch["product_id"])
        if patch.get("supplier_id") is not None and db.session.get(Supplier, patch["supplier_id"]) is None:
            raise NotFoundError("Supplier not found")

        invoice_no = patch.get("supplier_invoice_no") or _allocate_supplier_invoice_number()

        batch = StockBatch(
            product_id=patch["product_id"],
            batch_code=patch["batch_code"],
            expiry_date=patch.get("expiry_date"),
            quantity=patch["quantity"],
            received_quantity=patch["quantity"],
            unit_cost=patch["unit_cost"],
            supplier_id=patch.get("supplier_id"),
            supplier_invoice_no=invoice_no,
            is_paid=False,
        )
        db.session.add(batch)
        db.session.commit()
        return batch

    return run_with_retry(_op)


def list_recent_batches(limit: int = 20) -> list[dict]:
    rows = (
        db.session.query(StockBatch, Product, Supplier.name)
        .join(Product, Product.id == StockBatch.product_id)
        .outerjoin(Supplier, Supplier.id == StockBatch.supplier_id)
        .order_by(StockBatch.created_at.desc(), StockBatch.id.desc())
        .limit(limit)
        .all()
    )
    result = []
    for batch, product, supplier_name in rows:
        data = batch.to_dict()
        data["product_name"] = product.name
        data["category"] = product.category
        data["supplier_name"] = supplier_name
        result.append(data)
    return result


def _unpaid_filter():
    return or_(StockBatch.is_paid.is_(False), StockBatch.is_paid.is_(None))


def supplier_summary(
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    status: str = "unpaid",
) -> list[dict]:
    """
    What is owed to (or was paid to) each supplier.

    status: "unpaid" (default), "paid" or "all". Dates filter on the
    batch's creation day, both bounds inclusive. Amounts use the quantity
    received, not what is left on the shelf.
    """
    if status not in ("unpaid", "paid", "all"):
        raise ValidationError("status must be one of: unpaid, paid, all")

    paid_case = func.sum(case((StockBatch.is_paid.is_(True), 1), else_=0))
    unpaid_case = func.sum(case((StockBatch.is_paid.is_(True), 0), else_=1))

    q = (
        db.session.query(
            Supplier.id,
            Supplier.name,
            func.count(StockBatch.id),
            paid_case,
            unpaid_case,
            func.sum(StockBatch.received_quantity * StockBatch.unit_cost),
            func.min(StockBatch.created_at),
            func.max(StockBatch.created_at),
        )
        .select_from(StockBatch)
        .join(Supplier, Supplier.id == StockBatch.supplier_id)
        .filter(StockBatch.supplier_id.isnot(None))
    )

    if status == "paid":
        q = q.filter(StockBatch.is_paid.is_(True))
    elif status == "unpaid":
        q = q.filter(_unpaid_filter())

    if date_from is not None:
        q = q.filter(func.date(StockBatch.created_at) >= date_from.isoformat())
    if date_to is not None:
        q = q.filter(func.date(StockBatch.created_at) <= date_to.isoformat())

    rows = q.group_by(Supplier.id, Supplier.name).order_by(Supplier.name.asc()).all()
    return [
        {
            "supplier_id": sid,
            "supplier_name": name,
            "batch_count": int(count or 0),
            "paid_batches": int(paid or 0),
            "unpaid_batches": int(unpaid or 0),
            "total_amount": money_str(to_money(total)),
            "first_batch": _as_iso(first),
            "last_batch": _as_iso(last),
        }
        for sid, name, count, paid, unpaid, total, first, last in rows
    ]


def _as_iso(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc_z(value)
    return str(value)


def list_unpaid_batches(supplier_id: int) -> list[dict]:
    if not isinstance(supplier_id, int) or supplier_id <= 0:
        raise ValidationError("Valid supplier_id query param is required")

    rows = (
        db.session.query(StockBatch, Product, Supplier.name)
        .join(Product, Product.id == StockBatch.product_id)
        .outerjoin(Supplier, Supplier.id == StockBatch.supplier_id)
        .filter(StockBatch.supplier_id == supplier_id, _unpaid_filter())
        .order_by(StockBatch.created_at.asc(), StockBatch.id.asc())
        .all()
    )
    result = []
    for batch, product, supplier_name in rows:
        data = batch.to_dict()
        data["batch_id"] = batch.id
        data["product_name"] = product.name
        data["category"] = product.category
        data["supplier_name"] = supplier_name
        data["total_amount"] = money_str(to_money(batch.unit_cost) * batch.received_quantity)
        result.append(data)
    return result


def mark_batches_paid(
    batch_ids,
    *,
    supplier_invoice_no: str | None = None,
    paid_at: datetime | None = None,
) -> list[StockBatch]:
    """
    Flag batches as paid to their supplier.

    A supplied supplier_invoice_no overwrites the batches' number; otherwise
    the existing number is kept. Raises NotFoundError when none of the ids
    exists.
    """
    if not isinstance(batch_ids, (list, tuple)) or not batch_ids:
        raise ValidationError("batch_ids array is required and cannot be empty")

    ids = sorted({
        b for b in batch_ids
        if isinstance(b, int) and not isinstance(b, bool) and b > 0
    })
    if not ids:
        raise ValidationError("batch_ids must contain valid positive integers")

    paid_at_value = paid_at or utcnow()
    invoice_no = (supplier_invoice_no or "").strip() or None

    def _op():
        begin_write_transaction()
        batches = lock_for_update(
            db.session.query(StockBatch)
            .filter(StockBatch.id.in_(ids))
            .order_by(StockBatch.id.asc())
        ).all()
        if not batches:
            raise NotFoundError("No batches were updated (check batch_ids)")

        for batch in batches:
            batch.is_paid = True
            batch.paid_at = paid_at_value
            if invoice_no:
                batch.supplier_invoice_no = invoice_no

        db.session.commit()
        return batches

    return run_with_retry(_op)
