# Overview: Permission group constants for grouping related permissions.


class PermissionGroup:
    """Feature areas used to group permissions in the role editor."""
    DASHBOARD = "dashboard"
    REPORTS = "reports"
    PRODUCTS = "products"
    INVENTORY = "inventory"
    CATEGORIES = "categories"
    ORDERS = "orders"
    CUSTOMERS = "customers"
    USERS = "users"
    SETTINGS = "settings"
    ROLES = "roles"
