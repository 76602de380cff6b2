# Overview: Flask API routes for stock losses and expiry views.

# backend/shopdesk/routes/stock.py
"""
Stock routes.

- Write-offs are ADMIN only: they remove stock without a sale.
- Views require ADMIN or MANAGER.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import ADMIN, MANAGER, require_auth, require_role
from ..errors import BusinessRuleError, NotFoundError
from ..services import inventory_service, writeoff_service
from ..validation import ValidationError


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.post("/write-off")
@require_auth
@require_role(ADMIN)
def write_off_route():
    """
    Write off stock from one batch.

    Body: {batch_id, quantity, reason?="EXPIRED", notes?}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"message": "Invalid JSON payload"}), 400

    try:
        record = writeoff_service.write_off(
            batch_id=data.get("batch_id"),
            quantity=data.get("quantity"),
            reason=data.get("reason"),
            notes=data.get("notes"),
            created_by=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"message": e.message}), 404
    except BusinessRuleError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to write off stock")
        return jsonify({"message": "Failed to write off stock"}), 500

    current_app.logger.info(
        "Write-off %s: batch %s qty %s (%s) by user %s",
        record.id, record.batch_id, record.quantity, record.reason, g.current_user.id,
    )
    return jsonify({
        "message": "Stock written off successfully",
        "write_off": record.to_dict(),
    }), 201


@stock_bp.get("/write-offs")
@require_auth
@require_role(ADMIN, MANAGER)
def list_write_offs_route():
    return jsonify(writeoff_service.list_write_offs()), 200


@stock_bp.get("/expired")
@require_auth
@require_role(ADMIN, MANAGER)
def expired_stock_route():
    """Batches past their expiry date that still hold stock."""
    return jsonify(writeoff_service.list_expired_batches()), 200


@stock_bp.get("/summary")
@require_auth
@require_role(ADMIN, MANAGER)
def stock_summary_route():
    return jsonify(inventory_service.stock_summary()), 200
