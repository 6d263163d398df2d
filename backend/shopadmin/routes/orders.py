# Overview: Flask API routes for orders and payments; parses input and returns JSON responses.

# backend/shopadmin/routes/orders.py
"""
Orders API Routes

WHY: Checkout for customers and guests, plus the admin side of the order
lifecycle (status changes, cancellation, INSTAPAY payment review).

DESIGN:
- Checkout is idempotent: a retried POST with the same Idempotency-Key
  returns the original order
- Registered customers see their own orders; orders.view sees everything
- Guests look their order up with the order id + checkout email
- Status changes and payment review require orders.manage

SECURITY:
- Unknown or foreign orders answer 404 rather than 403 so order ids cannot
  be enumerated
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import (
    current_permissions,
    current_user_record,
    degrade_when_unavailable,
    idempotent,
    optional_auth,
    require_auth,
    require_permission,
    require_store,
)
from ..errors import NotFoundError
from ..services import order_service, payment_service
from ..validation import get_json_body, normalize_email, parse_pagination

orders_bp = Blueprint("orders", __name__, url_prefix="/api")


def _can_view_all_orders() -> bool:
    return bool(current_permissions() & {"orders.view", "orders.manage"})


# =============================================================================
# CHECKOUT
# =============================================================================

@orders_bp.post("/orders")
@orders_bp.post("/checkout", endpoint="checkout")
@optional_auth
@require_store
@idempotent
def create_order_route():
    """
    Create an order (registered customer or guest).

    Headers:
        Idempotency-Key: optional, max 128 chars

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2, "price": 100}],
        "payment_method": "INSTAPAY",  (COD default)
        "shipping_address": "12 Nile St, Cairo" | {"address", "apartment", "city", "postal_code", "country"},
        "delivery_fee": 50,  (optional, defaults to the store setting)
        "guest_name": "...", "guest_email": "...", "guest_phone": "..."  (required without a session)
    }

    Returns:
        201: {"order": {...}}
        400: validation error or insufficient stock
    """
    data = get_json_body()
    order = order_service.create_order(
        items=data.get("items"),
        shipping_address=data.get("shipping_address"),
        payment_method=data.get("payment_method"),
        delivery_fee=data.get("delivery_fee"),
        guest_info={
            "guest_name": data.get("guest_name"),
            "guest_email": data.get("guest_email"),
            "guest_phone": data.get("guest_phone"),
        },
        user=current_user_record(),
    )
    return {"order": order.to_dict()}, 201


# =============================================================================
# QUERIES
# =============================================================================

@orders_bp.get("/orders")
@require_auth
@degrade_when_unavailable({"items": [], "count": 0})
def list_orders_route():
    """
    Query params: status, payment_method, page, limit.

    Without orders.view only the caller's own orders are listed.
    """
    page, per_page = parse_pagination(request.args)
    filters = {
        "status": request.args.get("status") or None,
        "payment_method": request.args.get("payment_method") or None,
        "page": page,
        "per_page": per_page,
    }

    if _can_view_all_orders():
        return jsonify(order_service.list_orders(**filters))

    user = current_user_record()
    if user is None:
        return jsonify({"items": [], "count": 0})
    return jsonify(order_service.list_orders(user_id=user.id, **filters))


@orders_bp.get("/orders/guest/<int:order_id>")
@require_store
def guest_order_route(order_id: int):
    """Guest lookup: GET /api/orders/guest/<id>?email=<checkout email>"""
    order = order_service.get_guest_order(order_id, request.args.get("email"))
    return jsonify({"order": order.to_dict()})


@orders_bp.get("/orders/<int:order_id>")
@require_auth
@require_store
def get_order_route(order_id: int):
    user = current_user_record()
    order = order_service.get_order(
        order_id,
        viewer_user_id=user.id if user is not None else None,
        can_view_all=_can_view_all_orders(),
    )
    return jsonify({"order": order.to_dict()})


# =============================================================================
# LIFECYCLE
# =============================================================================

@orders_bp.patch("/orders/<int:order_id>/status")
@require_auth
@require_permission("orders.manage")
@require_store
def update_order_status_route(order_id: int):
    """Request body: {"status": "SHIPPED"}; must be a direct edge."""
    data = get_json_body()
    order = order_service.update_order_status(order_id, data.get("status"))
    return jsonify({"order": order.to_dict()})


@orders_bp.post("/orders/<int:order_id>/cancel")
@require_auth
@require_permission("orders.manage")
@require_store
def cancel_order_route(order_id: int):
    order = order_service.cancel_order(order_id)
    return jsonify({"order": order.to_dict()})


# =============================================================================
# PAYMENTS
# =============================================================================

@orders_bp.get("/orders/<int:order_id>/payment")
@require_auth
@require_permission("orders.view", "orders.manage")
@require_store
def get_payment_route(order_id: int):
    payment = payment_service.get_payment(order_id)
    return jsonify({"payment": payment.to_dict()})


@orders_bp.post("/orders/<int:order_id>/payment-proof")
@optional_auth
@require_store
def attach_proof_route(order_id: int):
    """
    Attach an INSTAPAY transfer proof.

    Allowed for the order's owner, for a guest supplying the checkout email,
    and for orders.manage holders.

    Request body: {"proof_url": "https://...", "email": "guest@example.com"}
    """
    data = get_json_body()

    if "orders.manage" not in current_permissions():
        user = current_user_record()
        try:
            order_service.get_order(order_id, viewer_user_id=user.id if user is not None else None)
        except NotFoundError:
            email = data.get("email")
            if not isinstance(email, str) or not email.strip():
                raise
            order_service.get_guest_order(order_id, normalize_email(email))

    payment = payment_service.attach_proof(order_id, data.get("proof_url"))
    return jsonify({"payment": payment.to_dict()})


@orders_bp.post("/orders/<int:order_id>/confirm-payment")
@require_auth
@require_permission("orders.manage")
@require_store
def confirm_payment_route(order_id: int):
    """
    Approve or reject an INSTAPAY payment.

    Request body: {"approved": true}

    Returns:
        200: {"payment": {...}, "order": {...}}
        400: COD payment, cancelled order or already confirmed
        404: no payment for the order
        409: stock no longer covers the order (nothing changed)
    """
    data = get_json_body()
    payment = payment_service.confirm_payment(
        order_id,
        data.get("approved"),
        actor_user_id=g.session_claims.user_id,
    )
    order = order_service.get_order(order_id, can_view_all=True)
    return jsonify({"payment": payment.to_dict(), "order": order.to_dict()})
