# backend/shopdesk/routes/inventory.py
"""
Inventory view routes.

Any signed-in role may read inventory. Quantities are always derived from
batch rows; nothing here writes.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import inventory_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def inventory_route():
    """Every product with total quantity and OK / LOW_STOCK / OUT_OF_STOCK."""
    return jsonify(inventory_service.inventory_status()), 200


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    return jsonify(inventory_service.low_stock()), 200


@inventory_bp.get("/expiring")
@require_auth
def expiring_route():
    """Products whose nearest batch expiry is within ?days= (default 30)."""
    days = request.args.get("days", default=30, type=int)
    if days is None or days < 0:
        return jsonify({"message": "days must be a non-negative integer"}), 400
    return jsonify(inventory_service.expiring_products(days=days)), 200
