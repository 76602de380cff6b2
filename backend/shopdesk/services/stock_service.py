# Overview: FEFO (first-expired-first-out) stock allocation against product batches.

"""
FEFO allocation rules (authoritative)

Batch selection:
- Only batches of the product with quantity > 0 take part.
- Order is expiry_date ascending, then batch id ascending (creation order).
- Batches without an expiry date sort after every dated batch.

Availability:
- A product is short when the sum of its non-empty batch quantities is lower
  than the requested quantity. A short product is reported and none of its
  batches is touched.

Deduction:
- Walk the ordered batches taking min(remaining, batch.quantity) from each
  until the request is covered. Batch quantities never go below zero.

Concurrency:
- All candidate batches are read under lock_for_update() and written through
  the ORM (version_id guarded). The caller owns the transaction: nothing here
  commits or rolls back.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import case, func

from ..extensions import db
from ..models import Product, StockBatch
from .concurrency import lock_for_update


@dataclass(frozen=True)
class BatchDeduction:
    batch_id: int
    quantity: int


@dataclass
class Allocation:
    """Outcome of one FEFO request: either deductions or a shortfall message."""
    product_id: int
    product_name: str
    requested: int
    available: int
    deductions: list[BatchDeduction] = field(default_factory=list)

    @property
    def is_short(self) -> bool:
        return self.available < self.requested

    @property
    def shortfall_message(self) -> str | None:
        if not self.is_short:
            return None
        return (
            f"Not enough stock for {self.product_name}. "
            f"Requested {self.requested}, available {self.available}."
        )


def fefo_order():
    """ORDER BY clause: earliest expiry first, undated last, then creation order."""
    return (
        case((StockBatch.expiry_date.is_(None), 1), else_=0),
        StockBatch.expiry_date.asc(),
        StockBatch.id.asc(),
    )


def available_quantity(product_id: int) -> int:
    q = db.session.query(func.coalesce(func.sum(StockBatch.quantity), 0)).filter(
        StockBatch.product_id == product_id,
        StockBatch.quantity > 0,
    )
    return int(q.scalar() or 0)


def locked_fefo_batches(product_id: int) -> list[StockBatch]:
    query = (
        db.session.query(StockBatch)
        .filter(StockBatch.product_id == product_id, StockBatch.quantity > 0)
        .order_by(*fefo_order())
    )
    return lock_for_update(query).all()


def allocate_fefo(product_id: int, quantity: int) -> Allocation:
    """
    Deduct quantity units of product_id from its batches in FEFO order.

    Returns an Allocation. When allocation.is_short no batch was modified;
    otherwise allocation.deductions lists what was taken from each batch.
    Pending changes are flushed but not committed.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    product = db.session.get(Product, product_id)
    name = product.name if product is not None else f"Product {product_id}"

    batches = locked_fefo_batches(product_id) if product is not None else []
    available = sum(b.quantity for b in batches)

    allocation = Allocation(
        product_id=product_id,
        product_name=name,
        requested=quantity,
        available=available,
    )
    if allocation.is_short:
        return allocation

    remaining = quantity
    for batch in batches:
        if remaining <= 0:
            break
        take = min(remaining, batch.quantity)
        batch.quantity = batch.quantity - take
        remaining -= take
        allocation.deductions.append(BatchDeduction(batch_id=batch.id, quantity=take))

    db.session.flush()
    return allocation
