# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import degrade_when_unavailable, require_auth, require_permission, require_store
from ..services import inventory_service, settings_service
from ..validation import get_json_body

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.patch("/products/<int:product_id>/stock")
@require_auth
@require_permission("inventory.manage")
@require_store
def update_stock_route(product_id: int):
    """Request body: {"stock": 25}; absolute, non-negative integer."""
    data = get_json_body()
    product = inventory_service.update_stock(product_id, data.get("stock"))
    return jsonify({"product": product.to_dict()})


@inventory_bp.get("/inventory/low-stock")
@require_auth
@require_permission("inventory.view", "inventory.manage")
@degrade_when_unavailable({"items": [], "threshold": None})
def low_stock_route():
    threshold = settings_service.get_low_stock_threshold()
    products = inventory_service.list_low_stock(threshold)
    return jsonify({"items": [p.to_dict() for p in products], "threshold": threshold})


@inventory_bp.get("/inventory/out-of-stock")
@require_auth
@require_permission("inventory.view", "inventory.manage")
@degrade_when_unavailable({"items": []})
def out_of_stock_route():
    products = inventory_service.list_out_of_stock()
    return jsonify({"items": [p.to_dict() for p in products]})
