# Overview: Built-in role definitions ensured on every boot.

from .helpers import get_all_permission_keys

# Reserved: cannot be deleted, and resolves to the full catalog when it has no grants
SUPER_ADMIN_ROLE_KEY = "ADMIN"

# Default role for self-registered accounts
STAFF_ROLE_KEY = "USER"

ROLE_STATUS_ACTIVE = "ACTIVE"
ROLE_STATUS_INACTIVE = "INACTIVE"
VALID_ROLE_STATUSES = {ROLE_STATUS_ACTIVE, ROLE_STATUS_INACTIVE}

# key -> (name, description, permission keys)
DEFAULT_ROLES = {
    SUPER_ADMIN_ROLE_KEY: (
        "Administrator",
        "Full access to all features.",
        get_all_permission_keys(),
    ),
    STAFF_ROLE_KEY: (
        "Staff",
        "Limited staff role. Start with no permissions and grant only what is needed.",
        [],
    ),
}
