# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import (
    current_permissions,
    degrade_when_unavailable,
    optional_auth,
    require_auth,
    require_permission,
    require_store,
)
from ..services import category_service
from ..validation import get_json_body

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@optional_auth
@degrade_when_unavailable({"categories": []})
def list_categories_route():
    """Public list; ?include_hidden=true also returns hidden ones for category admins."""
    include_hidden = (
        request.args.get("include_hidden", "false").lower() == "true"
        and bool(current_permissions() & {"categories.view", "categories.manage"})
    )
    categories = category_service.list_categories(include_hidden=include_hidden)
    return jsonify({"categories": [category.to_dict() for category in categories]})


@categories_bp.post("")
@require_auth
@require_permission("categories.manage")
@require_store
def create_category_route():
    category = category_service.create_category(get_json_body())
    return jsonify({"category": category.to_dict()}), 201


@categories_bp.route("/<int:category_id>", methods=["PUT", "PATCH"])
@require_auth
@require_permission("categories.manage")
@require_store
def update_category_route(category_id: int):
    category = category_service.update_category(category_id, get_json_body())
    return jsonify({"category": category.to_dict()})


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("categories.manage")
@require_store
def delete_category_route(category_id: int):
    category_service.delete_category(category_id)
    return jsonify({"success": True})
