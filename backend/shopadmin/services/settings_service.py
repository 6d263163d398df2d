# Overview: Service-layer operations for store settings; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..database import is_store_available
from ..errors import ValidationError
from ..extensions import db
from ..models import StoreSettings
from ..validation import coerce_non_negative_int, parse_money

SETTINGS_ROW_ID = 1


def get_settings() -> StoreSettings:
    """Fetch the singleton row, creating it with defaults on first use."""
    settings = db.session.get(StoreSettings, SETTINGS_ROW_ID)
    if settings is None:
        settings = StoreSettings(
            id=SETTINGS_ROW_ID,
            low_stock_threshold=current_app.config["DEFAULT_LOW_STOCK_THRESHOLD"],
        )
        db.session.add(settings)
        db.session.commit()
    return settings


def update_settings(changes: dict) -> StoreSettings:
    updates = {}
    if "store_name" in changes:
        name = changes["store_name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("store_name must be a non-empty string", details={"field": "store_name"})
        updates["store_name"] = name.strip()[:120]
    if "low_stock_threshold" in changes:
        updates["low_stock_threshold"] = coerce_non_negative_int(changes["low_stock_threshold"], "low_stock_threshold")
    if "delivery_fee" in changes:
        updates["delivery_fee_cents"] = parse_money(changes["delivery_fee"], "delivery_fee", allow_zero=True)

    settings = get_settings()
    for field, value in updates.items():
        setattr(settings, field, value)
    db.session.commit()
    return settings


def get_low_stock_threshold() -> int:
    if not is_store_available():
        return current_app.config["DEFAULT_LOW_STOCK_THRESHOLD"]
    return get_settings().low_stock_threshold


def get_default_delivery_fee_cents() -> int:
    return get_settings().delivery_fee_cents
