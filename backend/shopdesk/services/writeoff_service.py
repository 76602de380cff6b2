# Overview: Service-layer operations for stock write-offs (recorded losses).

from __future__ import annotations

from ..extensions import db
from ..errors import BatchNotFoundError, BusinessRuleError
from ..models import Product, StockBatch, StockWriteOff
from ..money import to_money
from ..time_utils import today
from ..validation import validate_write_off_request
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


def write_off(
    *,
    batch_id,
    quantity,
    reason=None,
    notes=None,
    created_by: int | None = None,
) -> StockWriteOff:
    """
    Remove quantity units from one batch as a loss.

    The batch row is locked for the whole operation; the write-off record and
    the batch decrement are committed together. Cost is taken from the
    batch, not the catalog.

    Raises ValidationError, BatchNotFoundError, or BusinessRuleError when
    quantity exceeds what is left in the batch.
    """
    request = validate_write_off_request(
        batch_id=batch_id,
        quantity=quantity,
        reason=reason,
        notes=notes,
    )

    def _op():
        begin_write_transaction()
        batch = lock_for_update(
            db.session.query(StockBatch).filter_by(id=request.batch_id)
        ).first()
        if batch is None:
            raise BatchNotFoundError(request.batch_id)

        if request.quantity > batch.quantity:
            raise BusinessRuleError("Quantity exceeds available batch stock")

        unit_cost = to_money(batch.unit_cost)
        record = StockWriteOff(
            product_id=batch.product_id,
            batch_id=batch.id,
            quantity=request.quantity,
            reason=request.reason,
            unit_cost=unit_cost,
            total_cost=to_money(unit_cost * request.quantity),
            write_off_date=today(),
            created_by=created_by,
            notes=request.notes,
        )
        db.session.add(record)
        batch.quantity = batch.quantity - request.quantity

        db.session.commit()
        return record

    return run_with_retry(_op)


def list_write_offs() -> list[dict]:
    rows = (
        db.session.query(StockWriteOff, Product.name, StockBatch.batch_code)
        .join(Product, Product.id == StockWriteOff.product_id)
        .outerjoin(StockBatch, StockBatch.id == StockWriteOff.batch_id)
        .order_by(StockWriteOff.write_off_date.desc(), StockWriteOff.id.desc())
        .all()
    )
    result = []
    for record, product_name, batch_code in rows:
        data = record.to_dict()
        data["product_name"] = product_name
        data["batch_code"] = batch_code
        result.append(data)
    return result


def list_expired_batches() -> list[dict]:
    """Batches still holding stock whose expiry date is before today."""
    rows = (
        db.session.query(StockBatch, Product)
        .join(Product, Product.id == StockBatch.product_id)
        .filter(
            StockBatch.quantity > 0,
            StockBatch.expiry_date.isnot(None),
            StockBatch.expiry_date < today(),
        )
        .order_by(StockBatch.expiry_date.asc(), StockBatch.id.asc())
        .all()
    )
    return [
        {
            "batch_id": batch.id,
            "product_id": product.id,
            "product_name": product.name,
            "category": product.category,
            "batch_code": batch.batch_code,
            "quantity": batch.quantity,
            "expiry_date": batch.expiry_date.isoformat(),
            "unit_cost": str(to_money(batch.unit_cost)),
        }
        for batch, product in rows
    ]
