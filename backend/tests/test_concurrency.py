"""
Concurrent stock deduction tests.

Verifies:
- Simultaneous invoices against one batch never oversell it
- A write based on a stale read of a batch is refused (version_id check)
"""

import threading

import pytest
from sqlalchemy import text
from sqlalchemy.orm.exc import StaleDataError

from shopdesk import create_app
from shopdesk.config import TestingConfig
from shopdesk.errors import InsufficientStockError
from shopdesk.extensions import db
from shopdesk.models import Invoice, Product, StockBatch
from shopdesk.services import invoice_service

from conftest import make_batch


@pytest.fixture
def file_app(tmp_path):
    """App on a file-backed SQLite database, so several connections share it."""

    class FileConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'shop.sqlite3'}"
        LOG_LEVEL = "WARNING"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def test_parallel_invoices_do_not_oversell(file_app):
    with file_app.app_context():
        product = Product(name="Insulin", unit_price=0, reorder_level=0)
        db.session.add(product)
        db.session.flush()
        batch = StockBatch(
            product_id=product.id,
            batch_code="ONLY",
            quantity=5,
            received_quantity=5,
            unit_cost=1,
        )
        db.session.add(batch)
        db.session.commit()
        product_id, batch_id = product.id, batch.id

    workers = 4
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def sell():
        with file_app.app_context():
            barrier.wait()
            try:
                header = invoice_service.create_invoice(
                    items=[{"product_id": product_id, "quantity": 3}],
                )
                outcome = header["invoice_number"]
            except InsufficientStockError:
                outcome = "short"
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=sell) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(results) == ["INV00001", "short", "short", "short"]
    with file_app.app_context():
        assert db.session.get(StockBatch, batch_id).quantity == 2
        assert Invoice.query.count() == 1


def test_stale_batch_write_is_refused(product):
    batch = make_batch(product, 5)
    batch_id = batch.id
    assert batch.quantity == 5

    # Another writer changes the row after this session read it
    db.session.execute(
        text("UPDATE product_batches SET quantity = 4, version_id = version_id + 1 WHERE id = :id"),
        {"id": batch_id},
    )

    batch.quantity = 2
    with pytest.raises(StaleDataError):
        db.session.flush()
    db.session.rollback()

    db.session.expire_all()
    assert db.session.get(StockBatch, batch_id).quantity == 5
