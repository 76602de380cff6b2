from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_iso_date, to_utc_z


class StockBatch(db.Model):
    """
    A received lot of a product.

    quantity is the remaining stock of the lot. It only ever goes down after
    creation (sales via FEFO deduction, write-offs) and never below zero.
    Emptied batches are kept for history.

    version_id backs optimistic concurrency: every UPDATE is guarded by the
    version read in the same session, so two writers that both read a stale
    quantity cannot both succeed even where row locks are not available.
    """
    __tablename__ = "product_batches"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_batches_quantity_nonneg"),
        db.CheckConstraint("received_quantity >= 0", name="ck_batches_received_nonneg"),
        db.CheckConstraint("unit_cost >= 0", name="ck_batches_unit_cost_nonneg"),
        # FEFO lookups: product + non-empty + expiry ordering
        db.Index("ix_batches_product_expiry", "product_id", "expiry_date", "id"),
        db.Index("ix_batches_supplier_paid", "supplier_id", "is_paid"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    batch_code = db.Column(db.String(64), nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    received_quantity = db.Column(db.Integer, nullable=False)

    unit_cost = db.Column(db.Numeric(12, 2), nullable=False)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    supplier_invoice_no = db.Column(db.String(64), nullable=True, index=True)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("batches", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("batches", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<StockBatch id={self.id} product_id={self.product_id} qty={self.quantity} expiry={self.expiry_date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "batch_code": self.batch_code,
            "expiry_date": to_iso_date(self.expiry_date),
            "quantity": self.quantity,
            "received_quantity": self.received_quantity,
            "unit_cost": money_str(self.unit_cost),
            "supplier_id": self.supplier_id,
            "supplier_invoice_no": self.supplier_invoice_no,
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "created_at": to_utc_z(self.created_at),
        }


class StockWriteOff(db.Model):
    """
    A recorded loss against one batch (expired, damaged, ...).

    unit_cost is copied from the batch at write-off time so the loss value
    does not move if catalog prices change later.
    """
    __tablename__ = "stock_write_offs"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_write_offs_quantity_pos"),
        db.Index("ix_write_offs_date", "write_off_date", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("product_batches.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(64), nullable=False, default="EXPIRED")

    unit_cost = db.Column(db.Numeric(12, 2), nullable=False)
    total_cost = db.Column(db.Numeric(12, 2), nullable=False)

    write_off_date = db.Column(db.Date, nullable=False)
    created_by = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
    batch = db.relationship("StockBatch", backref=db.backref("write_offs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "batch_id": self.batch_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "unit_cost": money_str(self.unit_cost),
            "total_cost": money_str(self.total_cost),
            "write_off_date": to_iso_date(self.write_off_date),
            "created_by": self.created_by,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
