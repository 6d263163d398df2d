from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import cents_to_amount


class Order(db.Model):
    """
    Customer order.

    Exactly one of user_id / guest identity is meaningful: registered
    customers are referenced by user_id, guests carry name + email (+ phone).

    total_cents is fixed at creation and never recomputed.

    STATE MACHINE (see order_service.ALLOWED_TRANSITIONS):
        PENDING -> CONFIRMED -> SHIPPED -> DELIVERED
        PENDING | CONFIRMED | SHIPPED -> CANCELLED
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_id", "user_id"),
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    guest_name = db.Column(db.String(120), nullable=True)
    guest_email = db.Column(db.String(255), nullable=True)
    guest_phone = db.Column(db.String(40), nullable=True)

    # Either a free-form string or {address, apartment, city, postal_code, country}
    shipping_address = db.Column(db.JSON, nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="PENDING")
    payment_method = db.Column(db.String(16), nullable=False, default="COD")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payment = db.relationship("Payment", backref="order", uselist=False, lazy="joined", cascade="all, delete-orphan")

    @property
    def customer_email(self) -> str | None:
        if self.user is not None:
            return self.user.email
        return self.guest_email

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "guest_name": self.guest_name,
            "guest_email": self.guest_email,
            "guest_phone": self.guest_phone,
            "shipping_address": self.shipping_address,
            "items": [item.to_dict() for item in self.items],
            "subtotal": cents_to_amount(self.subtotal_cents),
            "delivery_fee": cents_to_amount(self.delivery_fee_cents),
            "total": cents_to_amount(self.total_cents),
            "status": self.status,
            "payment_method": self.payment_method,
            "payment": self.payment.to_dict() if self.payment else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """Order line; price_cents is a snapshot taken at checkout."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.Index("ix_order_items_order_id", "order_id"),
        db.Index("ix_order_items_product_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": cents_to_amount(self.price_cents),
            "line_total": cents_to_amount(self.line_total_cents),
        }


class Payment(db.Model):
    """
    One payment record per order.

    INSTAPAY payments carry a proof URL uploaded by the customer; an admin
    approves (PAID, stock decremented) or rejects (back to UNPAID, proof
    cleared so the customer can re-upload).
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_payments_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    method = db.Column(db.String(16), nullable=False)
    # UNPAID | PAID
    status = db.Column(db.String(16), nullable=False, default="UNPAID")
    instapay_proof_url = db.Column(db.String(1024), nullable=True)

    approved_at = db.Column(db.DateTime, nullable=True)
    # String: the bootstrap admin has no users row
    approved_by = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "method": self.method,
            "status": self.status,
            "instapay_proof_url": self.instapay_proof_url,
            "approved_at": to_utc_z(self.approved_at),
            "approved_by": self.approved_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
