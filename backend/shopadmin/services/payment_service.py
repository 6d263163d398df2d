# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Approval Service

WHY: INSTAPAY orders are paid by bank transfer outside the system. The
customer uploads a proof (a URL to a screenshot) and an admin approves or
rejects it. Approval is the single point where stock is taken.

APPROVAL (one transaction):
- payment -> PAID, approved_at / approved_by stamped
- order PENDING -> CONFIRMED. An order an admin already moved forward by
  hand (CONFIRMED, SHIPPED) keeps its status; stock is still taken
- for every item: UPDATE products SET stock = stock - q WHERE stock >= q
  If any item cannot be covered the whole transaction rolls back and the
  caller gets 409 errors.order.out_of_stock_confirmation. Stock never
  goes negative, even with concurrent approvals.

REJECTION:
- payment -> UNPAID, approval stamps and proof cleared so the customer can
  upload a new proof; order status unchanged
- Allowed on a PAID payment too. Stock taken by the earlier approval is
  not returned; that is a manual inventory correction

GUARDS:
- COD payments have no proof and are never confirmed here
- A PAID payment cannot be approved again (that would take stock twice)
- CANCELLED orders accept neither proofs nor approvals
"""

from __future__ import annotations

from ..errors import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, Payment
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import decrement_if_available
from .order_service import (
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_PENDING,
    PAYMENT_METHOD_INSTAPAY,
)


# =============================================================================
# PAYMENT STATUS (CONSTANTS)
# =============================================================================

PAYMENT_STATUS_UNPAID = "UNPAID"
PAYMENT_STATUS_PAID = "PAID"

MAX_PROOF_URL_LENGTH = 1024


def _load_instapay_payment(order_id: int) -> tuple[Payment, Order]:
    payment = lock_for_update(db.session.query(Payment).filter_by(order_id=order_id)).first()
    if payment is None:
        raise NotFoundError(f"No payment for order {order_id}", code="errors.payment.not_found")
    if payment.method != PAYMENT_METHOD_INSTAPAY:
        raise InvalidOperationError("Only INSTAPAY payments can be confirmed", code="errors.payment.instapay_only")

    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if order.status == ORDER_STATUS_CANCELLED:
        raise InvalidOperationError("Order is cancelled", code="errors.order.cancelled")
    return payment, order


def get_payment(order_id: int) -> Payment:
    payment = db.session.query(Payment).filter_by(order_id=order_id).first()
    if payment is None:
        raise NotFoundError(f"No payment for order {order_id}", code="errors.payment.not_found")
    return payment


def attach_proof(order_id: int, proof_url) -> Payment:
    """Record the customer's transfer proof. Re-uploading replaces the old one."""
    if not isinstance(proof_url, str) or not proof_url.strip():
        raise ValidationError("proof_url is required", details={"field": "proof_url"})
    proof_url = proof_url.strip()
    if len(proof_url) > MAX_PROOF_URL_LENGTH:
        raise ValidationError("proof_url is too long", details={"field": "proof_url"})

    def _op():
        payment, _order = _load_instapay_payment(order_id)
        if payment.status == PAYMENT_STATUS_PAID:
            raise InvalidOperationError("Payment is already confirmed", code="errors.payment.already_paid")

        payment.instapay_proof_url = proof_url
        db.session.commit()
        return payment

    return run_with_retry(_op)


def confirm_payment(order_id: int, approved: bool, actor_user_id=None) -> Payment:
    """
    Approve or reject an INSTAPAY payment.

    Args:
        order_id: Order whose payment is being reviewed
        approved: True to approve (takes stock), False to reject
        actor_user_id: Admin performing the review (bootstrap admin has a
            string id, so this is stored as text)

    Raises:
        NotFoundError: no payment for the order
        InvalidOperationError: COD payment, cancelled order, approving an already PAID payment
        ConflictError: stock no longer covers the order (nothing changed)
    """
    if not isinstance(approved, bool):
        raise ValidationError("approved must be true or false", details={"field": "approved"})

    def _op():
        payment, order = _load_instapay_payment(order_id)

        if not approved:
            payment.status = PAYMENT_STATUS_UNPAID
            payment.approved_at = None
            payment.approved_by = None
            payment.instapay_proof_url = None
            db.session.commit()
            return payment

        if payment.status == PAYMENT_STATUS_PAID:
            raise InvalidOperationError("Payment is already confirmed", code="errors.payment.already_paid")

        payment.status = PAYMENT_STATUS_PAID
        payment.approved_at = utcnow()
        payment.approved_by = str(actor_user_id) if actor_user_id is not None else None
        if order.status == ORDER_STATUS_PENDING:
            order.status = ORDER_STATUS_CONFIRMED
        db.session.flush()

        for item in order.items:
            product_id, product_name = item.product_id, item.product_name
            if not decrement_if_available(product_id, item.quantity):
                db.session.rollback()
                raise ConflictError(
                    f"Not enough stock for '{product_name}' to confirm this order",
                    code="errors.order.out_of_stock_confirmation",
                    details={"product_id": product_id},
                )

        db.session.commit()
        return payment

    return run_with_retry(_op)
