# Overview: Flask API routes for store settings; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify

from ..decorators import degrade_when_unavailable, require_auth, require_permission, require_store
from ..services import settings_service
from ..validation import get_json_body

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


def _default_settings() -> dict:
    return {
        "settings": {
            "store_name": None,
            "low_stock_threshold": current_app.config["DEFAULT_LOW_STOCK_THRESHOLD"],
            "delivery_fee": 0,
            "updated_at": None,
        }
    }


@settings_bp.get("")
@require_auth
@require_permission("settings.view", "settings.manage")
@degrade_when_unavailable(_default_settings)
def get_settings_route():
    return jsonify({"settings": settings_service.get_settings().to_dict()})


@settings_bp.route("", methods=["PUT", "PATCH"])
@require_auth
@require_permission("settings.manage")
@require_store
def update_settings_route():
    """Request body (all optional): {"store_name", "low_stock_threshold", "delivery_fee"}"""
    settings = settings_service.update_settings(get_json_body())
    return jsonify({"settings": settings.to_dict()})
