from .auth import User, Role, Permission, RolePermission
from .catalog import Category, Product
from .orders import Order, OrderItem, Payment
from .settings import StoreSettings

__all__ = [
    'User', 'Role', 'Permission', 'RolePermission',
    'Category', 'Product',
    'Order', 'OrderItem', 'Payment',
    'StoreSettings',
]
