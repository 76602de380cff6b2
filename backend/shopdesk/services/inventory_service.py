# Overview: Service-layer read models for inventory; on-hand is always derived from batches.

# backend/shopdesk/services/inventory_service.py

"""
Inventory read semantics (authoritative)

- On-hand quantity of a product is SUM(batch.quantity) over its batches.
- Stock status: OUT_OF_STOCK when on-hand is 0, LOW_STOCK when on-hand is at
  or below the reorder level, OK otherwise.
- "Nearest expiry" only considers batches that still hold stock.
- All day comparisons use the shop's calendar day (time_utils.today()).
"""

from __future__ import annotations

from sqlalchemy import and_, case, func

from ..extensions import db
from ..models import Product, StockBatch
from ..time_utils import days_from_today, to_iso_date

OUT_OF_STOCK = "OUT_OF_STOCK"
LOW_STOCK = "LOW_STOCK"
OK = "OK"


def stock_status(total_quantity: int, reorder_level: int) -> str:
    if total_quantity <= 0:
        return OUT_OF_STOCK
    if total_quantity <= reorder_level:
        return LOW_STOCK
    return OK


def _totals_query():
    total = func.coalesce(func.sum(StockBatch.quantity), 0)
    return (
        db.session.query(
            Product.id,
            Product.name,
            Product.category,
            Product.reorder_level,
            total.label("total_quantity"),
        )
        .outerjoin(StockBatch, StockBatch.product_id == Product.id)
        .group_by(Product.id, Product.name, Product.category, Product.reorder_level)
    )


def inventory_status() -> list[dict]:
    """One row per product with total quantity and stock status."""
    rows = _totals_query().order_by(Product.id.asc()).all()
    result = []
    for product_id, name, category, reorder_level, total in rows:
        total = int(total or 0)
        reorder = int(reorder_level or 0)
        result.append({
            "product_id": product_id,
            "name": name,
            "category": category,
            "reorder_level": reorder,
            "total_quantity": total,
            "stock_status": stock_status(total, reorder),
        })
    return result


def low_stock() -> list[dict]:
    """Products needing attention: out of stock first, then by name."""
    rows = [r for r in inventory_status() if r["stock_status"] != OK]
    rows.sort(key=lambda r: (r["stock_status"] != OUT_OF_STOCK, r["name"]))
    return rows


def expiring_products(days: int = 30) -> list[dict]:
    """
    Products whose nearest expiry among non-empty batches falls within
    `days` of today (already-expired stock included).
    """
    horizon = days_from_today(days)
    nearest = func.min(StockBatch.expiry_date).label("nearest_expiry")
    total = func.sum(StockBatch.quantity).label("total_quantity")

    batch_view = (
        db.session.query(StockBatch.product_id.label("product_id"), nearest, total)
        .filter(StockBatch.quantity > 0)
        .group_by(StockBatch.product_id)
        .subquery()
    )

    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.category,
            Product.reorder_level,
            batch_view.c.total_quantity,
            batch_view.c.nearest_expiry,
        )
        .join(batch_view, batch_view.c.product_id == Product.id)
        .filter(batch_view.c.nearest_expiry.isnot(None), batch_view.c.nearest_expiry <= horizon)
        .order_by(batch_view.c.nearest_expiry.asc(), Product.id.asc())
        .all()
    )
    return [
        {
            "product_id": product_id,
            "name": name,
            "category": category,
            "reorder_level": int(reorder_level or 0),
            "total_quantity": int(total or 0),
            "nearest_expiry": to_iso_date(nearest_expiry),
        }
        for product_id, name, category, reorder_level, total, nearest_expiry in rows
    ]


def stock_summary() -> list[dict]:
    """Per product: total quantity, non-empty batch count, nearest expiry, low-stock flag."""
    has_stock = StockBatch.quantity > 0
    batch_count = func.coalesce(func.sum(case((has_stock, 1), else_=0)), 0)
    nearest_expiry = func.min(case((and_(has_stock, StockBatch.expiry_date.isnot(None)), StockBatch.expiry_date)))
    total = func.coalesce(func.sum(StockBatch.quantity), 0)

    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.category,
            Product.reorder_level,
            total,
            batch_count,
            nearest_expiry,
        )
        .outerjoin(StockBatch, StockBatch.product_id == Product.id)
        .group_by(Product.id, Product.name, Product.category, Product.reorder_level)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )

    result = []
    for product_id, name, category, reorder_level, total_qty, count, nearest in rows:
        total_qty = int(total_qty or 0)
        reorder = int(reorder_level or 0)
        result.append({
            "product_id": product_id,
            "name": name,
            "category": category,
            "reorder_level": reorder,
            "total_quantity": total_qty,
            "batch_count": int(count or 0),
            "nearest_expiry": _date_str(nearest),
            "is_low_stock": reorder > 0 and total_qty < reorder,
        })
    return result


def _date_str(value) -> str | None:
    # min() over a CASE loses the Date type on some dialects
    if value is None:
        return None
    if isinstance(value, str):
        return value[:10]
    return to_iso_date(value)
