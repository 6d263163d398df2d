# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Catalog Reconciliation and Permission Resolution

WHY: The catalog in code is the source of truth for what permissions exist;
the database holds the role -> permission grants admins edit at runtime.

RESOLUTION is deliberately split in two steps so the special case is visible:

1. try_resolve_explicit_grants(role_key)
   -> None when the role does not exist or the store is unreachable,
   -> the set of granted keys otherwise (possibly empty).

2. apply_bootstrap_fallback(role_key, explicit)
   -> if nothing was resolved (None or empty) and the role is ADMIN, the
      full catalog; any other role gets the empty set.

The fallback keeps a fresh or broken installation administrable. Its
consequence: "ADMIN with zero grant rows" and "ADMIN with every grant" are
indistinguishable, so ADMIN cannot be narrowed by removing all grants.

DESIGN PRINCIPLES:
- Fail closed: every role other than ADMIN needs explicit grants
- No caching: grants are read on every check so edits apply immediately
- Reconciliation is idempotent and never deletes rows
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import DBAPIError, OperationalError

from ..database import is_store_available
from ..extensions import db
from ..models import Permission, Role, RolePermission
from ..permissions import (
    DEFAULT_ROLES,
    PERMISSION_DEFINITIONS,
    ROLE_STATUS_ACTIVE,
    SUPER_ADMIN_ROLE_KEY,
    get_all_permission_keys,
)


# =============================================================================
# CATALOG RECONCILIATION
# =============================================================================

def reconcile_catalog() -> int:
    """
    Upsert every catalog entry into the permissions table.

    Creates missing rows and refreshes label/group/description of existing
    ones. id and key never change; rows for keys dropped from the catalog
    are left alone.

    Returns the number of rows created.
    """
    created_count = 0
    existing = {perm.key: perm for perm in db.session.query(Permission).all()}

    for key, label, description, group in PERMISSION_DEFINITIONS:
        permission = existing.get(key)
        if permission is None:
            db.session.add(Permission(key=key, label=label, description=description, group=group))
            created_count += 1
            continue
        permission.label = label
        permission.description = description
        permission.group = group

    db.session.commit()
    return created_count


def ensure_default_roles() -> int:
    """
    Upsert the built-in roles and their default grants.

    Name, description and status are reset to their defaults. Grants are only
    added, never removed, so admin edits to USER survive restarts.

    Returns the number of grants created.
    """
    permissions_by_key = {perm.key: perm for perm in db.session.query(Permission).all()}
    created_count = 0

    for role_key, (name, description, permission_keys) in DEFAULT_ROLES.items():
        role = db.session.query(Role).filter_by(key=role_key).first()
        if role is None:
            role = Role(key=role_key)
            db.session.add(role)
            current_app.logger.info("Created built-in role %s", role_key)
        role.name = name
        role.description = description
        role.status = ROLE_STATUS_ACTIVE
        db.session.flush()

        granted_ids = {grant.permission_id for grant in role.grants}
        for permission_key in permission_keys:
            permission = permissions_by_key.get(permission_key)
            if permission is None or permission.id in granted_ids:
                continue
            db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
            created_count += 1

    db.session.commit()
    return created_count


def bootstrap_rbac() -> None:
    """Run at boot and from `flask system init`."""
    created_permissions = reconcile_catalog()
    created_grants = ensure_default_roles()
    if created_permissions or created_grants:
        current_app.logger.info(
            "RBAC bootstrap: %d permissions created, %d grants created",
            created_permissions,
            created_grants,
        )


# =============================================================================
# RESOLUTION
# =============================================================================

def try_resolve_explicit_grants(role_key: str | None) -> set[str] | None:
    """Granted permission keys of a role, or None when unresolvable."""
    if not role_key or not is_store_available():
        return None

    try:
        role = db.session.query(Role).filter_by(key=role_key).first()
        if role is None:
            return None
        rows = (
            db.session.query(Permission.key)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .filter(RolePermission.role_id == role.id)
            .all()
        )
    except (OperationalError, DBAPIError):
        db.session.rollback()
        current_app.logger.warning("Permission lookup failed for role %s; treating as unresolved", role_key)
        return None

    return {row[0] for row in rows}


def apply_bootstrap_fallback(role_key: str | None, explicit: set[str] | None) -> set[str]:
    if explicit:
        return set(explicit)
    if role_key == SUPER_ADMIN_ROLE_KEY:
        return set(get_all_permission_keys())
    return set()


def resolve_permissions(role_key: str | None) -> set[str]:
    return apply_bootstrap_fallback(role_key, try_resolve_explicit_grants(role_key))


def has_any_permission(role_key: str | None, required_keys) -> bool:
    return bool(resolve_permissions(role_key).intersection(required_keys))
