# Overview: Flask API routes for sales invoices; parses input and returns JSON responses.

# backend/shopdesk/routes/invoices.py
"""Invoice API routes with role enforcement"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import ADMIN, CASHIER, MANAGER, require_auth, require_role
from ..errors import BusinessRuleError
from ..services import invoice_service
from ..time_utils import parse_calendar_date
from ..validation import ValidationError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


def _date_arg(name: str):
    raw = request.args.get(name)
    try:
        return parse_calendar_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


@invoices_bp.post("")
@require_auth
@require_role(ADMIN, MANAGER, CASHIER)
def create_invoice_route():
    """
    Create an invoice and deduct stock FEFO-style.

    Body: {customer_name?, invoice_date?, discount?, items: [{product_id, quantity, unit_price}]}

    400 with {message, errors} when one or more products are short;
    nothing is written in that case.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    try:
        header = invoice_service.create_invoice(
            customer_name=data.get("customer_name"),
            invoice_date=data.get("invoice_date"),
            discount=data.get("discount"),
            items=data.get("items"),
            created_by=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except BusinessRuleError as e:
        current_app.logger.info("Invoice rejected: %s", "; ".join(e.errors) or e.message)
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"message": "Failed to create invoice"}), 500

    current_app.logger.info(
        "Invoice %s created (total=%s, user_id=%s)",
        header["invoice_number"], header["total_amount"], g.current_user.id,
    )
    return jsonify(header), 201


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """List invoices, optionally for one day (?date=YYYY-MM-DD)."""
    try:
        on_date = _date_arg("date")
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    invoices = invoice_service.list_invoices(on_date=on_date)
    return jsonify([inv.to_dict() for inv in invoices]), 200


@invoices_bp.get("/range")
@require_auth
@require_role(ADMIN, MANAGER)
def list_invoices_range_route():
    """List invoices between ?from= and ?to= (inclusive, both optional)."""
    try:
        date_from = _date_arg("from")
        date_to = _date_arg("to")
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    invoices = invoice_service.list_invoices_in_range(date_from=date_from, date_to=date_to)
    return jsonify([inv.to_dict() for inv in invoices]), 200


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    """Get invoice header with its line items."""
    result = invoice_service.get_invoice(invoice_id)
    if result is None:
        return jsonify({"message": "Invoice not found"}), 404
    return jsonify(result), 200
