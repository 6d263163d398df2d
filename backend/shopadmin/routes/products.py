# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopadmin/routes/products.py
"""
Products API Routes

Public reads show ACTIVE products only. Callers holding products.view (or
products.manage) may pass ?include_inactive=true.

Writes require products.manage; stock is managed through
PATCH /api/products/<id>/stock (inventory.manage), see routes/inventory.py.
"""

from flask import Blueprint, jsonify, request

from ..decorators import (
    current_permissions,
    degrade_when_unavailable,
    optional_auth,
    require_auth,
    require_permission,
    require_store,
)
from ..services import products_service
from ..validation import coerce_positive_int, get_json_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

ADMIN_VIEW_PERMISSIONS = {"products.view", "products.manage"}


def _can_see_inactive() -> bool:
    return (
        request.args.get("include_inactive", "false").lower() == "true"
        and bool(current_permissions() & ADMIN_VIEW_PERMISSIONS)
    )


@products_bp.get("")
@optional_auth
@degrade_when_unavailable({"items": [], "count": 0})
def list_products_route():
    """
    Query params:
    - category_id: filter by category
    - search: case-insensitive name match
    - page / per_page: optional pagination (max 100 per page)
    - include_inactive: admins only
    """
    category_id = request.args.get("category_id")
    page = request.args.get("page")
    per_page = request.args.get("per_page")

    result = products_service.list_products(
        include_inactive=_can_see_inactive(),
        category_id=coerce_positive_int(category_id, "category_id") if category_id else None,
        search=request.args.get("search") or None,
        page=coerce_positive_int(page, "page") if page else None,
        per_page=coerce_positive_int(per_page, "per_page") if per_page else None,
    )
    return jsonify(result)


@products_bp.get("/<int:product_id>")
@optional_auth
@require_store
def get_product_route(product_id: int):
    product = products_service.get_product(product_id, include_inactive=_can_see_inactive())
    return jsonify({"product": product.to_dict()})


@products_bp.post("")
@require_auth
@require_permission("products.manage")
@require_store
def create_product_route():
    """
    Request body:
    {
        "name": "Linen Shirt",
        "price": 450,
        "discount_price": 399,  (optional, must be below price)
        "stock": 12,
        "category_id": 1,  (optional)
        "description": "...",  (optional)
        "status": "ACTIVE"  (optional)
    }
    """
    data = get_json_body()
    product = products_service.create_product(data)
    return jsonify({"product": product.to_dict()}), 201


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_auth
@require_permission("products.manage")
@require_store
def update_product_route(product_id: int):
    data = get_json_body()
    product = products_service.update_product(product_id, data)
    return jsonify({"product": product.to_dict()})


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("products.manage")
@require_store
def delete_product_route(product_id: int):
    products_service.delete_product(product_id)
    return jsonify({"success": True})
