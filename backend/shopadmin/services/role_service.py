# Overview: Service-layer operations for roles; encapsulates business logic and database work.

"""
Role Store

WHY: Admins define their own roles (e.g. "WAREHOUSE") and pick the
permissions each one grants. Users reference roles by key.

RULES:
- Role keys are uppercase identifiers ([A-Z0-9_], at most 50 chars) and unique
- Unknown permission keys in a create/update request are ignored
- Updating permissions REPLACES the whole grant set
- ADMIN cannot be deleted; deleting any other role removes its grants
"""

from __future__ import annotations

import re

from ..errors import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Permission, Role, RolePermission
from ..permissions import ROLE_STATUS_ACTIVE, SUPER_ADMIN_ROLE_KEY, VALID_ROLE_STATUSES
from .concurrency import run_with_retry


ROLE_KEY_RE = re.compile(r"^[A-Z0-9_]+$")
ROLE_KEY_MAX_LENGTH = 50
ROLE_NAME_MAX_LENGTH = 100
ROLE_DESCRIPTION_MAX_LENGTH = 500


def _normalize_key(key) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Role key is required", details={"field": "key"})
    key = key.strip().upper()
    if len(key) > ROLE_KEY_MAX_LENGTH or not ROLE_KEY_RE.match(key):
        raise ValidationError(
            "Role key must contain only A-Z, 0-9 and underscore (max 50 characters)",
            code="errors.roles.invalid_key",
            details={"field": "key"},
        )
    return key


def _normalize_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Role name is required", details={"field": "name"})
    name = name.strip()
    if len(name) > ROLE_NAME_MAX_LENGTH:
        raise ValidationError("Role name must be at most 100 characters", details={"field": "name"})
    return name


def _normalize_description(description) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string", details={"field": "description"})
    description = description.strip()
    if len(description) > ROLE_DESCRIPTION_MAX_LENGTH:
        raise ValidationError("Role description must be at most 500 characters", details={"field": "description"})
    return description or None


def _set_grants(role: Role, permission_keys) -> None:
    """Replace the role's grants; unknown keys are skipped."""
    wanted = {key for key in permission_keys if isinstance(key, str)}
    permissions = db.session.query(Permission).filter(Permission.key.in_(wanted)).all() if wanted else []

    role.grants.clear()
    # Deletes must hit the table before re-inserting the same (role, permission) pair
    db.session.flush()
    for permission in permissions:
        role.grants.append(RolePermission(permission=permission))
    db.session.flush()


# =============================================================================
# QUERIES
# =============================================================================

def get_role_by_key(key: str) -> Role | None:
    if not key:
        return None
    return db.session.query(Role).filter_by(key=key).first()


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFoundError(f"Role {role_id} not found", code="errors.roles.not_found")
    return role


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.key).all()


def list_permission_definitions() -> list[Permission]:
    """Persisted catalog rows, grouped for the role editor."""
    return db.session.query(Permission).order_by(Permission.group, Permission.label).all()


# =============================================================================
# MUTATIONS
# =============================================================================

def create_role(
    name: str,
    key: str,
    description: str | None = None,
    permission_keys=None,
) -> Role:
    name = _normalize_name(name)
    key = _normalize_key(key)
    description = _normalize_description(description)
    if permission_keys is not None and not isinstance(permission_keys, (list, tuple, set)):
        raise ValidationError("permissions must be a list of permission keys", details={"field": "permissions"})

    def _op():
        if get_role_by_key(key) is not None:
            raise ConflictError(f"Role key '{key}' already exists", code="errors.roles.duplicate_key")

        role = Role(key=key, name=name, description=description, status=ROLE_STATUS_ACTIVE)
        db.session.add(role)
        db.session.flush()
        _set_grants(role, permission_keys or [])
        db.session.commit()
        return role

    return run_with_retry(_op)


def update_role(role_id: int, changes: dict) -> Role:
    """
    Partial update. Accepted keys: name, description, status, permissions.

    When "permissions" is present the grant set is replaced wholesale.
    The role key itself is immutable.
    """
    # Validate everything before touching the row
    updates = {}
    if "name" in changes:
        updates["name"] = _normalize_name(changes["name"])
    if "description" in changes:
        updates["description"] = _normalize_description(changes["description"])
    if "status" in changes:
        if changes["status"] not in VALID_ROLE_STATUSES:
            raise ValidationError(
                f"status must be one of: {', '.join(sorted(VALID_ROLE_STATUSES))}",
                details={"field": "status"},
            )
        updates["status"] = changes["status"]
    permission_keys = changes.get("permissions")
    if permission_keys is not None and not isinstance(permission_keys, (list, tuple, set)):
        raise ValidationError("permissions must be a list of permission keys", details={"field": "permissions"})

    def _op():
        role = get_role(role_id)
        for field, value in updates.items():
            setattr(role, field, value)
        if permission_keys is not None:
            _set_grants(role, permission_keys)

        db.session.commit()
        return role

    return run_with_retry(_op)


def delete_role(role_id: int) -> None:
    role = get_role(role_id)
    if role.key == SUPER_ADMIN_ROLE_KEY:
        raise InvalidOperationError("The ADMIN role cannot be deleted", code="errors.roles.cannot_delete_admin")

    db.session.delete(role)
    db.session.commit()
