# Overview: All permission definitions organized by feature area.
# Each permission is defined as: (key, label, description, group)

from .categories import PermissionGroup


# -- DASHBOARD / REPORTS --

DASHBOARD_PERMISSIONS = [
    (
        "dashboard.view",
        "View dashboard",
        "Open the admin dashboard and its summary cards",
        PermissionGroup.DASHBOARD,
    ),
    (
        "reports.view",
        "View reports",
        "View sales and inventory reports",
        PermissionGroup.REPORTS,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "products.view",
        "View products",
        "List products including inactive ones",
        PermissionGroup.PRODUCTS,
    ),
    (
        "products.manage",
        "Manage products",
        "Create, edit and delete products",
        PermissionGroup.PRODUCTS,
    ),
    (
        "inventory.view",
        "View inventory",
        "View stock levels and low/out-of-stock lists",
        PermissionGroup.INVENTORY,
    ),
    (
        "inventory.manage",
        "Manage inventory",
        "Set stock quantities",
        PermissionGroup.INVENTORY,
    ),
    (
        "categories.view",
        "View categories",
        None,
        PermissionGroup.CATEGORIES,
    ),
    (
        "categories.manage",
        "Manage categories",
        "Create, edit and delete categories",
        PermissionGroup.CATEGORIES,
    ),
]


# -- ORDERS / CUSTOMERS --

ORDER_PERMISSIONS = [
    (
        "orders.view",
        "View orders",
        "List and open every order",
        PermissionGroup.ORDERS,
    ),
    (
        "orders.manage",
        "Manage orders",
        "Change order status, cancel orders and confirm payments",
        PermissionGroup.ORDERS,
    ),
    (
        "customers.view",
        "View customers",
        "View customer accounts and their orders",
        PermissionGroup.CUSTOMERS,
    ),
]


# -- USERS / ROLES --

USER_PERMISSIONS = [
    (
        "users.view",
        "View users",
        None,
        PermissionGroup.USERS,
    ),
    (
        "users.manage",
        "Manage users",
        "Change the role assigned to a user",
        PermissionGroup.USERS,
    ),
    (
        "roles.view",
        "View roles",
        None,
        PermissionGroup.ROLES,
    ),
    (
        "roles.manage",
        "Manage roles",
        "Create, edit and delete roles and their permissions",
        PermissionGroup.ROLES,
    ),
]


# -- SETTINGS --

SETTINGS_PERMISSIONS = [
    (
        "settings.view",
        "View settings",
        None,
        PermissionGroup.SETTINGS,
    ),
    (
        "settings.manage",
        "Manage settings",
        "Edit store settings such as the low-stock threshold",
        PermissionGroup.SETTINGS,
    ),
]


# Combined list of all permissions (used by initialization and helpers)
PERMISSION_DEFINITIONS = (
    DASHBOARD_PERMISSIONS
    + CATALOG_PERMISSIONS
    + ORDER_PERMISSIONS
    + USER_PERMISSIONS
    + SETTINGS_PERMISSIONS
)
