# backend/shopadmin/services/products_service.py
"""
Products Service

Products are soft-deleted (deleted_at) so historical orders keep resolving.
The storefront only sees ACTIVE, non-deleted products; admins holding
products.view also see INACTIVE ones.
"""
from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product
from ..time_utils import utcnow
from ..validation import coerce_non_negative_int, coerce_positive_int, parse_money

VALID_PRODUCT_STATUSES = {"ACTIVE", "INACTIVE"}


def _paginate(base_query, page: int | None, per_page: int | None) -> dict:
    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_products(
    *,
    include_inactive: bool = False,
    category_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    base_query = db.session.query(Product).filter(Product.deleted_at.is_(None))
    if not include_inactive:
        base_query = base_query.filter(Product.status == "ACTIVE")
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if search:
        base_query = base_query.filter(Product.name.ilike(f"%{search.strip()}%"))

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())
    return _paginate(base_query, page, per_page)


def get_product(product_id: int, *, include_inactive: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or product.is_deleted or (not include_inactive and product.status != "ACTIVE"):
        raise NotFoundError(f"Product {product_id} not found", code="errors.products.not_found")
    return product


def _clean_patch(data: dict, *, partial: bool, current: Product | None = None) -> dict:
    patch = {}

    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required", details={"field": "name"})
        patch["name"] = name.strip()[:200]

    if "description" in data:
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string", details={"field": "description"})
        patch["description"] = description or None

    if "price" in data or not partial:
        patch["price_cents"] = parse_money(data.get("price"), "price")

    if "discount_price" in data:
        raw = data.get("discount_price")
        patch["discount_price_cents"] = None if raw in (None, "") else parse_money(raw, "discount_price")

    if "stock" in data or not partial:
        patch["stock"] = coerce_non_negative_int(data.get("stock", 0), "stock")

    if "status" in data:
        if data["status"] not in VALID_PRODUCT_STATUSES:
            raise ValidationError("status must be ACTIVE or INACTIVE", details={"field": "status"})
        patch["status"] = data["status"]

    if "category_id" in data:
        raw = data.get("category_id")
        if raw is None:
            patch["category_id"] = None
        else:
            category_id = coerce_positive_int(raw, "category_id")
            if db.session.get(Category, category_id) is None:
                raise ValidationError(f"Category {category_id} does not exist", details={"field": "category_id"})
            patch["category_id"] = category_id

    price = patch.get("price_cents", current.price_cents if current else None)
    discount = patch.get("discount_price_cents", current.discount_price_cents if current else None)
    if discount is not None and price is not None and discount >= price:
        raise ValidationError("discount_price must be lower than price", details={"field": "discount_price"})

    return patch


def create_product(data: dict) -> Product:
    patch = _clean_patch(data, partial=False)
    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, data: dict) -> Product:
    product = get_product(product_id, include_inactive=True)
    patch = _clean_patch(data, partial=True, current=product)
    for field, value in patch.items():
        setattr(product, field, value)
    db.session.commit()
    return product


def delete_product(product_id: int) -> None:
    """Soft delete; the row stays for order history."""
    product = get_product(product_id, include_inactive=True)
    product.deleted_at = utcnow()
    db.session.commit()
