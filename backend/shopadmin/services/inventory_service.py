# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory Service

Stock is a single integer column on products.

WHO CHANGES STOCK:
- Admins, explicitly, via update_stock (absolute value)
- Payment approval, via decrement_if_available (relative, guarded)

Checkout does NOT reserve stock; it only checks availability.

LOW STOCK: 0 < stock <= threshold (settings.low_stock_threshold).
OUT OF STOCK: stock == 0. Both lists ignore soft-deleted products.
"""

from __future__ import annotations

from sqlalchemy import update

from ..errors import NotFoundError
from ..extensions import db
from ..models import Product
from ..validation import coerce_non_negative_int
from . import settings_service


def update_stock(product_id: int, stock) -> Product:
    stock = coerce_non_negative_int(stock, "stock")
    product = db.session.get(Product, product_id)
    if product is None or product.is_deleted:
        raise NotFoundError(f"Product {product_id} not found", code="errors.products.not_found")
    product.stock = stock
    db.session.commit()
    return product


def decrement_if_available(product_id: int, quantity: int) -> bool:
    """
    Atomically take `quantity` units if at least that many are in stock.

    Single conditional UPDATE, so concurrent approvals can never drive stock
    negative. Does not commit; the caller owns the transaction, and the
    commit or rollback that follows expires any loaded Product rows.
    """
    result = db.session.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.deleted_at.is_(None),
            Product.stock >= quantity,
        )
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def list_low_stock(threshold: int | None = None) -> list[Product]:
    if threshold is None:
        threshold = settings_service.get_low_stock_threshold()
    return (
        db.session.query(Product)
        .filter(
            Product.deleted_at.is_(None),
            Product.stock > 0,
            Product.stock <= threshold,
        )
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )


def list_out_of_stock() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.deleted_at.is_(None), Product.stock == 0)
        .order_by(Product.name.asc())
        .all()
    )


def count_low_stock(threshold: int | None = None) -> int:
    if threshold is None:
        threshold = settings_service.get_low_stock_threshold()
    return (
        db.session.query(Product)
        .filter(
            Product.deleted_at.is_(None),
            Product.stock > 0,
            Product.stock <= threshold,
        )
        .count()
    )
