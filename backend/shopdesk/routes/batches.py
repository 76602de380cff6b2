# Overview: Flask API routes for stock batches and supplier payables.

# backend/shopdesk/routes/batches.py
"""
Batch (stock-in) routes.

All routes require ADMIN or MANAGER.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import ADMIN, MANAGER, require_auth, require_role
from ..errors import NotFoundError
from ..services import batch_service
from ..time_utils import parse_calendar_date, parse_iso_datetime
from ..validation import ValidationError


batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


@batches_bp.get("/next-supplier-invoice")
@require_auth
@require_role(ADMIN, MANAGER)
def next_supplier_invoice_route():
    """Preview the next auto-generated supplier invoice number (advisory)."""
    try:
        number = batch_service.next_supplier_invoice_number()
    except Exception:
        current_app.logger.exception("Failed to generate supplier invoice number")
        return jsonify({"message": "Failed to generate supplier invoice number"}), 500
    return jsonify({"supplier_invoice_no": number}), 200


@batches_bp.post("")
@require_auth
@require_role(ADMIN, MANAGER)
def create_batch_route():
    """
    Create a new stock batch (stock in).

    Body: {product_id, batch_code, quantity, unit_cost,
           expiry_date?, supplier_id?, supplier_invoice_no?}
    A missing supplier_invoice_no is auto-generated.
    """
    payload = request.get_json(silent=True) or {}

    try:
        batch = batch_service.create_batch(payload)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404
    except Exception:
        current_app.logger.exception("Failed to create product batch")
        return jsonify({"message": "Failed to create product batch"}), 500

    return jsonify(batch.to_dict()), 201


@batches_bp.get("/recent")
@require_auth
@require_role(ADMIN, MANAGER)
def recent_batches_route():
    limit = request.args.get("limit", default=20, type=int)
    limit = max(1, min(limit, 200))
    return jsonify(batch_service.list_recent_batches(limit=limit)), 200


@batches_bp.get("/supplier-summary")
@require_auth
@require_role(ADMIN, MANAGER)
def supplier_summary_route():
    """
    Amounts per supplier.

    Query: from, to (YYYY-MM-DD, on batch creation day), status=unpaid|paid|all
    """
    try:
        date_from = parse_calendar_date(request.args.get("from"))
        date_to = parse_calendar_date(request.args.get("to"))
    except ValueError:
        return jsonify({"message": "from/to must be dates (YYYY-MM-DD)"}), 400

    status = (request.args.get("status") or "unpaid").lower()
    try:
        rows = batch_service.supplier_summary(date_from=date_from, date_to=date_to, status=status)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    return jsonify(rows), 200


@batches_bp.get("/supplier-unpaid")
@require_auth
@require_role(ADMIN, MANAGER)
def supplier_unpaid_route():
    supplier_id = request.args.get("supplier_id", type=int)
    try:
        rows = batch_service.list_unpaid_batches(supplier_id)
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    return jsonify(rows), 200


@batches_bp.post("/mark-paid")
@require_auth
@require_role(ADMIN, MANAGER)
def mark_paid_route():
    """Body: {batch_ids: [..], supplier_invoice_no?, paid_at?}"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    try:
        paid_at = parse_iso_datetime(data.get("paid_at")) if data.get("paid_at") else None
    except (ValueError, TypeError, AttributeError):
        return jsonify({"message": "paid_at must be an ISO-8601 datetime"}), 400

    try:
        batches = batch_service.mark_batches_paid(
            data.get("batch_ids"),
            supplier_invoice_no=data.get("supplier_invoice_no"),
            paid_at=paid_at,
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404
    except Exception:
        current_app.logger.exception("Failed to mark batches as paid")
        return jsonify({"message": "Failed to mark batches as paid"}), 500

    return jsonify({
        "updated_count": len(batches),
        "updated_batches": [b.to_dict() for b in batches],
    }), 200
