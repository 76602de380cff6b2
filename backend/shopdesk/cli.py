# Overview: Flask CLI commands for database bootstrap and demo data.

# backend/shopdesk/cli.py
# Commands (run from the backend directory, FLASK_APP=wsgi.py):
# - flask shop init-db
#   Create all tables (use `flask db upgrade` for migration-managed databases).
# - flask shop reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask shop seed-demo
#   Insert a supplier, products and dated batches to try the API against.

import click
from datetime import timedelta
from decimal import Decimal
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, StockBatch, Supplier
from .time_utils import today


@click.group('shop')
def shop_group():
    """Database bootstrap and demo data commands."""


@shop_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("Tables created.")


@shop_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables (deletes all data)."""
    if not yes:
        click.echo("Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@shop_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Idempotently insert demo supplier, products and batches."""
    supplier = Supplier.query.filter_by(name="Demo Wholesale").first()
    if supplier is None:
        supplier = Supplier(name="Demo Wholesale", phone="+000000000", email="orders@demo.local")
        db.session.add(supplier)
        db.session.flush()

    d = today()
    catalog = [
        ("Paracetamol 500mg", "Pharmacy", Decimal("2.50"), 20, [
            ("PARA-A", d + timedelta(days=20), 30, Decimal("1.20")),
            ("PARA-B", d + timedelta(days=200), 60, Decimal("1.10")),
        ]),
        ("Mineral Water 1L", "Beverages", Decimal("0.80"), 50, [
            ("WATER-A", d + timedelta(days=365), 120, Decimal("0.35")),
        ]),
        ("Notebook A5", "Stationery", Decimal("1.75"), 10, [
            ("NOTE-A", None, 40, Decimal("0.90")),
        ]),
    ]

    created = 0
    for name, category, price, reorder, batches in catalog:
        product = Product.query.filter_by(name=name).first()
        if product is not None:
            continue
        product = Product(
            name=name,
            category=category,
            unit_price=price,
            reorder_level=reorder,
            supplier_id=supplier.id,
        )
        db.session.add(product)
        db.session.flush()
        for code, expiry, qty, cost in batches:
            db.session.add(StockBatch(
                product_id=product.id,
                batch_code=code,
                expiry_date=expiry,
                quantity=qty,
                received_quantity=qty,
                unit_cost=cost,
                supplier_id=supplier.id,
            ))
        created += 1

    db.session.commit()
    click.echo(f"Seeded {created} product(s).")


def register_commands(app):
    app.cli.add_command(shop_group)
