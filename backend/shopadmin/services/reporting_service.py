# Overview: Service-layer operations for dashboard reporting; read-only aggregate queries.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem
from ..time_utils import days_ago, start_of_day, utcnow
from ..validation import cents_to_amount
from . import inventory_service

BEST_SELLERS_LIMIT = 10
ORDERS_PER_DAY_WINDOW = 30


def empty_dashboard_stats() -> dict:
    """Shape returned when the store is unreachable."""
    return {
        "total_orders": 0,
        "orders_today": 0,
        "revenue": 0,
        "low_stock_count": 0,
        "best_selling_products": [],
        "orders_per_day": [],
    }


def get_dashboard_stats() -> dict:
    """
    Headline numbers for the admin dashboard.

    revenue counts DELIVERED orders only; best sellers rank by units across
    all non-cancelled orders.
    """
    today = start_of_day(utcnow())

    total_orders = db.session.query(func.count(Order.id)).scalar() or 0
    orders_today = db.session.query(func.count(Order.id)).filter(Order.created_at >= today).scalar() or 0
    revenue_cents = (
        db.session.query(func.coalesce(func.sum(Order.total_cents), 0))
        .filter(Order.status == "DELIVERED")
        .scalar()
    )

    best_sellers = (
        db.session.query(
            OrderItem.product_id,
            OrderItem.product_name,
            func.sum(OrderItem.quantity).label("quantity"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status != "CANCELLED")
        .group_by(OrderItem.product_id, OrderItem.product_name)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(BEST_SELLERS_LIMIT)
        .all()
    )

    window_start = days_ago(ORDERS_PER_DAY_WINDOW - 1)
    recent = db.session.query(Order.created_at).filter(Order.created_at >= window_start).all()
    per_day = {(window_start + timedelta(days=offset)).date(): 0 for offset in range(ORDERS_PER_DAY_WINDOW)}
    for (created_at,) in recent:
        day = created_at.date()
        if day in per_day:
            per_day[day] += 1

    return {
        "total_orders": total_orders,
        "orders_today": orders_today,
        "revenue": cents_to_amount(int(revenue_cents or 0)),
        "low_stock_count": inventory_service.count_low_stock(),
        "best_selling_products": [
            {"product_id": row.product_id, "name": row.product_name, "quantity": int(row.quantity)}
            for row in best_sellers
        ],
        "orders_per_day": [{"date": day.isoformat(), "count": count} for day, count in per_day.items()],
    }
