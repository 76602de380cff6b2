from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_iso_date, to_utc_z


class Invoice(db.Model):
    """
    Customer sales invoice.

    Created in one transaction together with its lines and the FEFO stock
    deductions that back them; there is no draft state.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_number"),
        db.CheckConstraint("discount >= 0", name="ck_invoices_discount_nonneg"),
        db.CheckConstraint("total_amount >= 0", name="ck_invoices_total_nonneg"),
        db.Index("ix_invoices_date_id", "invoice_date", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "INV00042")
    invoice_number = db.Column(db.String(32), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    invoice_date = db.Column(db.Date, nullable=False)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="PAID", index=True)

    created_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        lazy=True,
        order_by="InvoiceLine.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total={self.total_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_name": self.customer_name,
            "invoice_date": to_iso_date(self.invoice_date),
            "subtotal": money_str(self.subtotal),
            "discount": money_str(self.discount),
            "total_amount": money_str(self.total_amount),
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceLine(db.Model):
    __tablename__ = "invoice_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_invoice_lines_quantity_pos"),
        db.CheckConstraint("unit_price >= 0", name="ck_invoice_lines_price_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    # Price actually charged on this sale (may differ from Product.unit_price)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "line_total": money_str(self.line_total),
        }
