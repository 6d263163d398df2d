# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from ..errors import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product

VALID_CATEGORY_STATUSES = {"visible", "hidden"}


def list_categories(include_hidden: bool = False) -> list[Category]:
    query = db.session.query(Category)
    if not include_hidden:
        query = query.filter(Category.status == "visible")
    return query.order_by(Category.name).all()


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError(f"Category {category_id} not found", code="errors.categories.not_found")
    return category


def _clean(data: dict, *, partial: bool) -> dict:
    cleaned = {}
    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required", details={"field": "name"})
        cleaned["name"] = name.strip()[:120]
    if "description" in data:
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValidationError("description must be a string", details={"field": "description"})
        cleaned["description"] = description.strip() if description else None
    if "status" in data:
        if data["status"] not in VALID_CATEGORY_STATUSES:
            raise ValidationError("status must be visible or hidden", details={"field": "status"})
        cleaned["status"] = data["status"]
    return cleaned


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category).filter(db.func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Category '{name}' already exists", code="errors.categories.duplicate_name")


def create_category(data: dict) -> Category:
    cleaned = _clean(data, partial=False)
    _ensure_unique_name(cleaned["name"])
    category = Category(**cleaned)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, data: dict) -> Category:
    cleaned = _clean(data, partial=True)
    category = get_category(category_id)
    if "name" in cleaned:
        _ensure_unique_name(cleaned["name"], exclude_id=category.id)
    for field, value in cleaned.items():
        setattr(category, field, value)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    category = get_category(category_id)
    in_use = (
        db.session.query(Product.id)
        .filter(Product.category_id == category.id, Product.deleted_at.is_(None))
        .first()
    )
    if in_use is not None:
        raise InvalidOperationError(
            "Category still has products; move or delete them first",
            code="errors.categories.in_use",
        )
    # Soft-deleted products keep their history but lose the link
    db.session.query(Product).filter(Product.category_id == category.id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.session.delete(category)
    db.session.commit()
