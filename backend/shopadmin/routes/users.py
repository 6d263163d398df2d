# Overview: Flask API routes for user administration; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import degrade_when_unavailable, require_auth, require_permission, require_store
from ..services import auth_service
from ..validation import get_json_body, parse_pagination

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("users.view", "users.manage")
@degrade_when_unavailable({"items": [], "count": 0})
def list_users_route():
    page, per_page = parse_pagination(request.args)
    users, total = auth_service.list_users(page=page, limit=per_page)
    return jsonify({
        "items": [user.to_dict() for user in users],
        "count": len(users),
        "pagination": {"page": page, "per_page": per_page, "total": total},
    })


@users_bp.patch("/<int:user_id>/role")
@require_auth
@require_permission("users.manage")
@require_store
def change_user_role_route(user_id: int):
    """Request body: {"role": "WAREHOUSE"}; the role must exist and be ACTIVE."""
    data = get_json_body()
    user = auth_service.assign_role(user_id, data.get("role"))
    return jsonify({"user": user.to_dict()})
