# Overview: Flask API routes for role management; parses input and returns JSON responses.

# backend/shopadmin/routes/roles.py
"""
Role Management API Routes

SECURITY:
- roles.view (or roles.manage) to read roles and the permission catalog
- roles.manage to create, edit or delete roles
- ADMIN cannot be deleted
"""

from flask import Blueprint, jsonify

from ..decorators import degrade_when_unavailable, require_auth, require_permission, require_store
from ..services import role_service
from ..validation import get_json_body

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


# =============================================================================
# QUERIES
# =============================================================================

@roles_bp.get("")
@require_auth
@require_permission("roles.view", "roles.manage")
@degrade_when_unavailable({"roles": []})
def list_roles_route():
    roles = role_service.list_roles()
    return jsonify({"roles": [role.to_dict() for role in roles]})


@roles_bp.get("/permissions")
@require_auth
@require_permission("roles.view", "roles.manage")
@degrade_when_unavailable({"permissions": []})
def list_permissions_route():
    permissions = role_service.list_permission_definitions()
    return jsonify({"permissions": [perm.to_dict() for perm in permissions]})


@roles_bp.get("/<int:role_id>")
@require_auth
@require_permission("roles.view", "roles.manage")
@require_store
def get_role_route(role_id: int):
    return jsonify({"role": role_service.get_role(role_id).to_dict()})


# =============================================================================
# MUTATIONS
# =============================================================================

@roles_bp.post("")
@require_auth
@require_permission("roles.manage")
@require_store
def create_role_route():
    """
    Request body:
    {
        "name": "Warehouse",
        "key": "WAREHOUSE",
        "description": "Stock handling only",  (optional)
        "permissions": ["inventory.view", "inventory.manage"]  (optional)
    }
    """
    data = get_json_body()
    role = role_service.create_role(
        name=data.get("name"),
        key=data.get("key"),
        description=data.get("description"),
        permission_keys=data.get("permissions"),
    )
    return jsonify({"role": role.to_dict()}), 201


@roles_bp.route("/<int:role_id>", methods=["PUT", "PATCH"])
@require_auth
@require_permission("roles.manage")
@require_store
def update_role_route(role_id: int):
    """Partial update; "permissions", when present, replaces the whole grant set."""
    role = role_service.update_role(role_id, get_json_body())
    return jsonify({"role": role.to_dict()})


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_permission("roles.manage")
@require_store
def delete_role_route(role_id: int):
    role_service.delete_role(role_id)
    return jsonify({"success": True})
