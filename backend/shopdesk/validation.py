from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .money import to_money, ZERO
from .time_utils import parse_calendar_date, parse_iso_datetime, today


# Maximum money amount: 9,999,999,999.99 fits Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

# Largest id/quantity a BIGINT column can hold
MAX_INT = 2**63 - 1

MAX_CUSTOMER_NAME = 255
MAX_REASON = 64


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _strict_int(value: Any, name: str) -> int:
    number = _parse_int(value, name)
    if abs(number) > MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return number


def _parse_int(value: Any, name: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _amount(value: Any, name: str) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{name} cannot exceed {MAX_AMOUNT}")
    return amount


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _strict_int(value, col.key)

    if isinstance(coltype, Numeric):
        return _amount(value, col.key)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Calendar dates ("YYYY-MM-DD")
    if isinstance(coltype, Date):
        try:
            d = parse_calendar_date(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
        return d

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_batch(patch: dict) -> None:
    """
    Business rules for stock-in that are not captured by column metadata.
    Keep these small and centralized.
    """
    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("Quantity must be a positive number")

    if patch.get("unit_cost") is None or patch["unit_cost"] < 0:
        raise ValidationError("Unit cost must be >= 0")

    if patch.get("product_id") is None or patch["product_id"] <= 0:
        raise ValidationError("product_id must be a positive integer")

    supplier_id = patch.get("supplier_id")
    if supplier_id is not None and supplier_id <= 0:
        raise ValidationError("supplier_id must be a positive integer if provided")

    if not patch.get("supplier_invoice_no"):
        patch["supplier_invoice_no"] = None


# =============================================================================
# Invoice requests
# =============================================================================

@dataclass(frozen=True)
class InvoiceItemRequest:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class InvoiceRequest:
    customer_name: str | None
    invoice_date: date
    discount: Decimal
    items: tuple[InvoiceItemRequest, ...]


def _invoice_item(raw: Any, position: int) -> InvoiceItemRequest:
    prefix = f"Invalid item data (item {position})"
    if not isinstance(raw, dict):
        raise ValidationError(prefix)

    try:
        product_id = _strict_int(raw.get("product_id"), "product_id")
        quantity = _strict_int(raw.get("quantity"), "quantity")
    except ValidationError as e:
        raise ValidationError(f"{prefix}: {e}")

    if product_id <= 0:
        raise ValidationError(f"{prefix}: product_id must be positive")
    if quantity <= 0:
        raise ValidationError(f"{prefix}: quantity must be positive")

    try:
        unit_price = _amount(raw.get("unit_price"), "unit_price")
    except ValidationError as e:
        raise ValidationError(f"{prefix}: {e}")
    if unit_price < 0:
        raise ValidationError(f"{prefix}: unit_price cannot be negative")

    return InvoiceItemRequest(product_id=product_id, quantity=quantity, unit_price=unit_price)


def validate_invoice_request(
    *,
    customer_name: Any = None,
    invoice_date: Any = None,
    discount: Any = None,
    items: Any = None,
) -> InvoiceRequest:
    """
    Shape-check an invoice request before any storage access.

    invoice_date is reduced to a calendar day and compared with the shop's
    today() as a day, so any time-of-day today is accepted. Missing
    unit_price and discount count as zero.
    """
    if discount in (None, ""):
        discount_amount = ZERO
    else:
        try:
            discount_amount = to_money(discount)
        except ValueError:
            raise ValidationError("Discount must be a number.")
    if discount_amount < 0:
        raise ValidationError("Discount cannot be negative.")
    if discount_amount > MAX_AMOUNT:
        raise ValidationError(f"Discount cannot exceed {MAX_AMOUNT}.")

    if not items or not isinstance(items, (list, tuple)):
        raise ValidationError("Invoice items are required")

    parsed_items = tuple(_invoice_item(raw, i + 1) for i, raw in enumerate(items))

    # Amounts are stored in Numeric(12, 2) columns
    subtotal = ZERO
    for position, item in enumerate(parsed_items, start=1):
        if item.line_total > MAX_AMOUNT:
            raise ValidationError(
                f"Invalid item data (item {position}): line total cannot exceed {MAX_AMOUNT}"
            )
        subtotal += item.line_total
    if subtotal > MAX_AMOUNT:
        raise ValidationError(f"Invoice subtotal cannot exceed {MAX_AMOUNT}.")

    try:
        inv_date = parse_calendar_date(invoice_date)
    except (ValueError, TypeError):
        raise ValidationError("Invalid invoice date.")
    if inv_date is None:
        inv_date = today()
    if inv_date > today():
        raise ValidationError("Invoice date cannot be in the future.")

    name = None
    if customer_name is not None:
        name = str(customer_name).strip() or None
        if name and len(name) > MAX_CUSTOMER_NAME:
            raise ValidationError(f"customer_name exceeds max length {MAX_CUSTOMER_NAME}")

    return InvoiceRequest(
        customer_name=name,
        invoice_date=inv_date,
        discount=discount_amount,
        items=parsed_items,
    )


# =============================================================================
# Write-off requests
# =============================================================================

@dataclass(frozen=True)
class WriteOffRequest:
    batch_id: int
    quantity: int
    reason: str
    notes: str | None


def validate_write_off_request(
    *,
    batch_id: Any = None,
    quantity: Any = None,
    reason: Any = None,
    notes: Any = None,
) -> WriteOffRequest:
    message = "batch_id and a positive quantity are required"
    try:
        bid = _strict_int(batch_id, "batch_id")
        qty = _strict_int(quantity, "quantity")
    except ValidationError:
        raise ValidationError(message)
    if bid <= 0 or qty <= 0:
        raise ValidationError(message)

    reason_text = str(reason).strip() if reason is not None else ""
    if not reason_text:
        reason_text = "EXPIRED"
    if len(reason_text) > MAX_REASON:
        raise ValidationError(f"reason exceeds max length {MAX_REASON}")

    notes_text = str(notes).strip() if notes is not None else None

    return WriteOffRequest(batch_id=bid, quantity=qty, reason=reason_text, notes=notes_text or None)
