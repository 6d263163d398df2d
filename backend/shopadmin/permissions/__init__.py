# Overview: Permission system package.
# Re-exports the catalog, built-in roles and lookup helpers.

from .categories import PermissionGroup
from .definitions import (
    PERMISSION_DEFINITIONS,
    DASHBOARD_PERMISSIONS,
    CATALOG_PERMISSIONS,
    ORDER_PERMISSIONS,
    USER_PERMISSIONS,
    SETTINGS_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLES,
    SUPER_ADMIN_ROLE_KEY,
    STAFF_ROLE_KEY,
    ROLE_STATUS_ACTIVE,
    ROLE_STATUS_INACTIVE,
    VALID_ROLE_STATUSES,
)
from .helpers import (
    PermissionDefinition,
    list_permissions,
    get_all_permission_keys,
    get_permissions_by_group,
    get_permission_definition,
    validate_permission_key,
)

__all__ = [
    "PermissionGroup",
    "PERMISSION_DEFINITIONS",
    "DASHBOARD_PERMISSIONS",
    "CATALOG_PERMISSIONS",
    "ORDER_PERMISSIONS",
    "USER_PERMISSIONS",
    "SETTINGS_PERMISSIONS",
    "DEFAULT_ROLES",
    "SUPER_ADMIN_ROLE_KEY",
    "STAFF_ROLE_KEY",
    "ROLE_STATUS_ACTIVE",
    "ROLE_STATUS_INACTIVE",
    "VALID_ROLE_STATUSES",
    "PermissionDefinition",
    "list_permissions",
    "get_all_permission_keys",
    "get_permissions_by_group",
    "get_permission_definition",
    "validate_permission_key",
]
