"""
Pytest fixtures for shopdesk backend tests.

Provides the application on an in-memory database, a per-test clean store,
identity headers for each role, and small builders for catalog/batch rows.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from shopdesk import create_app
from shopdesk.config import TestingConfig
from shopdesk.extensions import db
from shopdesk.models import Product, StockBatch, Supplier
from shopdesk.time_utils import today


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test (schema is kept)."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


def identity(user_id: int, role: str) -> dict:
    """Headers the upstream gateway sets for a signed-in user."""
    return {'X-User-Id': str(user_id), 'X-User-Role': role}


@pytest.fixture
def admin_headers():
    return identity(1, 'ADMIN')


@pytest.fixture
def manager_headers():
    return identity(2, 'MANAGER')


@pytest.fixture
def cashier_headers():
    return identity(3, 'CASHIER')


def days(n: int):
    """Calendar day n days from the shop's today (negative for the past)."""
    return today() + timedelta(days=n)


def make_supplier(name="Acme Wholesale") -> Supplier:
    supplier = Supplier(name=name)
    db.session.add(supplier)
    db.session.commit()
    return supplier


def make_product(name="Paracetamol", *, unit_price="2.50", reorder_level=0, category="Pharmacy") -> Product:
    product = Product(
        name=name,
        category=category,
        unit_price=Decimal(unit_price),
        reorder_level=reorder_level,
    )
    db.session.add(product)
    db.session.commit()
    return product


def make_batch(
    product,
    quantity,
    *,
    expiry=None,
    code=None,
    unit_cost="1.00",
    supplier=None,
    supplier_invoice_no=None,
    is_paid=False,
) -> StockBatch:
    batch = StockBatch(
        product_id=product.id,
        batch_code=code or f"B-{product.id}-{quantity}",
        expiry_date=expiry,
        quantity=quantity,
        received_quantity=quantity,
        unit_cost=Decimal(unit_cost),
        supplier_id=supplier.id if supplier is not None else None,
        supplier_invoice_no=supplier_invoice_no,
        is_paid=is_paid,
    )
    db.session.add(batch)
    db.session.commit()
    return batch


def batch_quantities(*batches) -> list[int]:
    """Current stored quantities, read fresh from the database."""
    db.session.expire_all()
    return [db.session.get(StockBatch, b_id).quantity for b_id in batches]


@pytest.fixture
def supplier():
    return make_supplier()


@pytest.fixture
def product():
    return make_product()
