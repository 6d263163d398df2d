# Overview: Best-effort email notifications sent off the request thread.

"""
Notifications

WHY: Staff want an email when a new order arrives. Mail is a side channel:
it must never slow down or fail a checkout.

- SMTP_HOST unset: sending is skipped (logged at debug level)
- Messages go out on a daemon thread
- Delivery failures are logged and dropped; there is no retry queue
"""

from __future__ import annotations

import logging
import smtplib
import threading
from email.message import EmailMessage

from flask import current_app

logger = logging.getLogger(__name__)


def _smtp_settings(config) -> dict | None:
    if not config.get("SMTP_HOST"):
        return None
    return {
        "host": config["SMTP_HOST"],
        "port": config["SMTP_PORT"],
        "user": config.get("SMTP_USER"),
        "password": config.get("SMTP_PASSWORD"),
        "sender": config.get("SMTP_FROM") or config.get("SMTP_USER") or config["ADMIN_EMAIL"],
        "use_tls": config["SMTP_USE_TLS"],
    }


def _deliver(settings: dict, message: EmailMessage) -> None:
    try:
        with smtplib.SMTP(settings["host"], settings["port"], timeout=10) as smtp:
            if settings["use_tls"]:
                smtp.starttls()
            if settings["user"]:
                smtp.login(settings["user"], settings["password"] or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email to %s", message["To"])


def send_mail(to: str, subject: str, body: str) -> bool:
    """
    Queue an email for delivery.

    Returns False when SMTP is not configured, True once the send thread
    has been started (not a delivery guarantee).
    """
    settings = _smtp_settings(current_app.config)
    if settings is None or not to:
        logger.debug("SMTP not configured; skipping email %r", subject)
        return False

    message = EmailMessage()
    message["From"] = settings["sender"]
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    threading.Thread(target=_deliver, args=(settings, message), daemon=True).start()
    return True


def notify_new_order(order) -> bool:
    """Tell staff about a new order. Never raises."""
    try:
        recipient = current_app.config.get("ORDER_NOTIFICATION_EMAIL")
        lines = [
            f"Order #{order.id} was placed.",
            f"Customer: {order.guest_name or (order.user.name if order.user else 'unknown')}",
            f"Payment method: {order.payment_method}",
            f"Total: {order.total_cents / 100:.2f}",
            "",
        ]
        lines.extend(f"- {item.quantity} x {item.product_name}" for item in order.items)
        return send_mail(recipient, f"New order #{order.id}", "\n".join(lines))
    except Exception:
        current_app.logger.exception("Failed to queue new-order notification for order %s", order.id)
        return False
