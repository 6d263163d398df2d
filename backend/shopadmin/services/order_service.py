# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Lifecycle Service

================================================================================
PURPOSE: Create orders and move them through a forward-only state machine
================================================================================

STATE MACHINE:
    PENDING -> CONFIRMED -> SHIPPED -> DELIVERED
    PENDING | CONFIRMED | SHIPPED -> CANCELLED

    DELIVERED and CANCELLED are terminal.

RULES:
1. Only direct edges are legal (PENDING -> SHIPPED is forbidden)
2. No backwards movement and no same-state "transitions"
3. Checkout checks availability but never reserves or decrements stock;
   stock moves when an admin approves the payment (payment_service)
4. Cancelling never restocks: stock was only taken if payment was approved,
   and reversing that is a manual inventory correction
5. The order total is computed once at checkout from the submitted unit
   prices and is never recomputed

An order belongs to a registered user (user_id) or to a guest identified by
name + email (+ optional phone).
================================================================================
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderItem, Payment, Product, User
from ..validation import (
    coerce_positive_int,
    is_valid_email,
    normalize_email,
    parse_money,
)
from . import notification_service, settings_service
from .concurrency import lock_for_update, run_with_retry


# =============================================================================
# STATUS CONSTANTS
# =============================================================================

ORDER_STATUS_PENDING = "PENDING"
ORDER_STATUS_CONFIRMED = "CONFIRMED"
ORDER_STATUS_SHIPPED = "SHIPPED"
ORDER_STATUS_DELIVERED = "DELIVERED"
ORDER_STATUS_CANCELLED = "CANCELLED"

VALID_ORDER_STATUSES = {
    ORDER_STATUS_PENDING,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    ORDER_STATUS_PENDING: {ORDER_STATUS_CONFIRMED, ORDER_STATUS_CANCELLED},
    ORDER_STATUS_CONFIRMED: {ORDER_STATUS_SHIPPED, ORDER_STATUS_CANCELLED},
    ORDER_STATUS_SHIPPED: {ORDER_STATUS_DELIVERED, ORDER_STATUS_CANCELLED},
    ORDER_STATUS_DELIVERED: set(),
    ORDER_STATUS_CANCELLED: set(),
}

PAYMENT_METHOD_COD = "COD"
PAYMENT_METHOD_INSTAPAY = "INSTAPAY"
VALID_PAYMENT_METHODS = {PAYMENT_METHOD_COD, PAYMENT_METHOD_INSTAPAY}

DEFAULT_COUNTRY = "Egypt"


@dataclass
class OrderLine:
    product_id: int
    quantity: int
    price_cents: int


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


# =============================================================================
# INPUT NORMALIZATION
# =============================================================================

def _parse_items(items) -> list[OrderLine]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Order must contain at least one item", details={"field": "items"})

    lines = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object", details={"field": "items"})
        lines.append(
            OrderLine(
                product_id=coerce_positive_int(raw.get("product_id"), f"items[{index}].product_id"),
                quantity=coerce_positive_int(raw.get("quantity"), f"items[{index}].quantity"),
                price_cents=parse_money(raw.get("price"), f"items[{index}].price"),
            )
        )
    return lines


def _parse_shipping_address(value):
    """Accept a non-empty string or {address, apartment?, city, postal_code?, country?}."""
    if isinstance(value, str):
        if not value.strip():
            raise ValidationError("shipping_address is required", details={"field": "shipping_address"})
        return value.strip()

    if isinstance(value, dict):
        address = value.get("address")
        city = value.get("city")
        if not isinstance(address, str) or not address.strip():
            raise ValidationError("shipping_address.address is required", details={"field": "shipping_address"})
        if not isinstance(city, str) or not city.strip():
            raise ValidationError("shipping_address.city is required", details={"field": "shipping_address"})
        normalized = {
            "address": address.strip(),
            "apartment": value.get("apartment") or None,
            "city": city.strip(),
            "postal_code": value.get("postal_code") or None,
            "country": value.get("country") or DEFAULT_COUNTRY,
        }
        for key in ("apartment", "postal_code", "country"):
            if normalized[key] is not None and not isinstance(normalized[key], str):
                raise ValidationError(f"shipping_address.{key} must be a string", details={"field": "shipping_address"})
        return normalized

    raise ValidationError("shipping_address is required", details={"field": "shipping_address"})


def _parse_guest(guest_info: dict | None) -> dict:
    guest_info = guest_info or {}
    name = guest_info.get("guest_name")
    email = guest_info.get("guest_email")
    phone = guest_info.get("guest_phone")

    if not isinstance(name, str) or not name.strip():
        raise ValidationError("guest_name is required for guest checkout", details={"field": "guest_name"})
    if not is_valid_email(email):
        raise ValidationError("A valid guest_email is required for guest checkout", details={"field": "guest_email"})
    if phone is not None and not isinstance(phone, str):
        raise ValidationError("guest_phone must be a string", details={"field": "guest_phone"})

    return {
        "guest_name": name.strip()[:120],
        "guest_email": normalize_email(email),
        "guest_phone": phone.strip()[:40] if phone else None,
    }


def _check_availability(lines: list[OrderLine]) -> dict[int, Product]:
    """
    Every product must exist, be ACTIVE and have enough stock for the total
    quantity requested across all lines. Nothing is reserved.
    """
    requested: "OrderedDict[int, int]" = OrderedDict()
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    products = {}
    for product_id, quantity in requested.items():
        product = db.session.get(Product, product_id)
        if product is None or product.is_deleted or product.status != "ACTIVE":
            raise ValidationError(
                f"Product {product_id} is not available",
                code="errors.order.product_unavailable",
                details={"product_id": product_id},
            )
        if product.stock < quantity:
            raise ValidationError(
                f"Only {product.stock} of '{product.name}' in stock",
                code="errors.order.out_of_stock",
                details={"product_id": product_id, "available": product.stock, "requested": quantity},
            )
        products[product_id] = product
    return products


# =============================================================================
# CHECKOUT
# =============================================================================

def create_order(
    *,
    items,
    shipping_address,
    payment_method: str | None = None,
    delivery_fee=None,
    guest_info: dict | None = None,
    user: User | None = None,
) -> Order:
    """
    Validate a checkout and persist Order(PENDING) + Payment(UNPAID) atomically.

    total = sum(quantity * submitted price) + delivery fee. When no delivery
    fee is submitted the store's configured fee applies.

    Raises:
        ValidationError: bad items, address, guest identity, payment method,
            unavailable product or insufficient stock
    """
    lines = _parse_items(items)
    address = _parse_shipping_address(shipping_address)

    method = payment_method or PAYMENT_METHOD_COD
    if method not in VALID_PAYMENT_METHODS:
        raise ValidationError("payment_method must be COD or INSTAPAY", details={"field": "payment_method"})

    if delivery_fee is None:
        delivery_fee_cents = settings_service.get_default_delivery_fee_cents()
    else:
        delivery_fee_cents = parse_money(delivery_fee, "delivery_fee", allow_zero=True)

    guest = {"guest_name": None, "guest_email": None, "guest_phone": None}
    if user is None:
        guest = _parse_guest(guest_info)

    def _op():
        products = _check_availability(lines)

        subtotal_cents = sum(line.quantity * line.price_cents for line in lines)
        order = Order(
            user_id=user.id if user is not None else None,
            shipping_address=address,
            subtotal_cents=subtotal_cents,
            delivery_fee_cents=delivery_fee_cents,
            total_cents=subtotal_cents + delivery_fee_cents,
            status=ORDER_STATUS_PENDING,
            payment_method=method,
            **guest,
        )
        for line in lines:
            order.items.append(
                OrderItem(
                    product_id=line.product_id,
                    product_name=products[line.product_id].name,
                    quantity=line.quantity,
                    price_cents=line.price_cents,
                )
            )
        order.payment = Payment(method=method, status="UNPAID")

        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    notification_service.notify_new_order(order)
    return order


# =============================================================================
# TRANSITIONS
# =============================================================================

def update_order_status(order_id: int, new_status: str) -> Order:
    """
    Move an order along one edge of the state machine.

    Entering CONFIRMED here does not touch stock.

    Raises:
        ValidationError: unknown status
        NotFoundError: no such order
        InvalidTransitionError: not a direct edge from the current status
    """
    if new_status not in VALID_ORDER_STATUSES:
        raise ValidationError(
            f"Invalid status '{new_status}'. Must be one of: {', '.join(sorted(VALID_ORDER_STATUSES))}",
            details={"field": "status"},
        )

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", code="errors.order.not_found")

        if not can_transition(order.status, new_status):
            raise InvalidTransitionError(
                f"Cannot move order from {order.status} to {new_status}",
                details={"from": order.status, "to": new_status},
            )

        order.status = new_status
        db.session.commit()
        return order

    return run_with_retry(_op)


def cancel_order(order_id: int) -> Order:
    """Cancel from any non-terminal state. No restock."""
    return update_order_status(order_id, ORDER_STATUS_CANCELLED)


# =============================================================================
# QUERIES
# =============================================================================

def list_orders(
    *,
    user_id: int | None = None,
    status: str | None = None,
    payment_method: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """
    Paginated order listing, newest first.

    user_id restricts the list to one customer's orders (used for callers
    without orders.view).
    """
    query = db.session.query(Order)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    if status:
        if status not in VALID_ORDER_STATUSES:
            raise ValidationError(f"Invalid status '{status}'", details={"field": "status"})
        query = query.filter(Order.status == status)
    if payment_method:
        query = query.filter(Order.payment_method == payment_method)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {
        "items": [order.to_dict() for order in orders],
        "count": len(orders),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_order(order_id: int, *, viewer_user_id: int | None = None, can_view_all: bool = False) -> Order:
    """Owners and orders.view holders see the order; everyone else gets 404."""
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found", code="errors.order.not_found")
    if can_view_all:
        return order
    if viewer_user_id is not None and order.user_id == viewer_user_id:
        return order
    raise NotFoundError(f"Order {order_id} not found", code="errors.order.not_found")


def get_guest_order(order_id: int, email) -> Order:
    """Guest lookup by order id + the email used at checkout."""
    order = db.session.get(Order, order_id)
    if (
        order is None
        or not order.guest_email
        or not isinstance(email, str)
        or normalize_email(email) != order.guest_email
    ):
        raise NotFoundError(f"Order {order_id} not found", code="errors.order.not_found")
    return order
