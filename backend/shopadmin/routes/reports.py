# Overview: Flask API routes for dashboard reporting; returns JSON aggregates.

from flask import Blueprint, jsonify

from ..decorators import degrade_when_unavailable, require_auth, require_role
from ..permissions import SUPER_ADMIN_ROLE_KEY
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/dashboard")


@reports_bp.get("/stats")
@require_auth
@require_role(SUPER_ADMIN_ROLE_KEY)
@degrade_when_unavailable(reporting_service.empty_dashboard_stats)
def dashboard_stats_route():
    """
    Totals, today's orders, delivered revenue, low-stock count, top 10 best
    sellers and a 30-day orders-per-day series. Zeros while the store is down.
    """
    return jsonify(reporting_service.get_dashboard_stats())
