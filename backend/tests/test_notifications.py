"""
New-order email notification tests.
"""

from conftest import guest_order_payload
from shopadmin.services import notification_service


class ImmediateThread:
    """Runs the target inline so delivery can be asserted."""

    def __init__(self, target, args=(), daemon=None):
        self.target = target
        self.args = args

    def start(self):
        self.target(*self.args)


def test_skipped_without_smtp(app):
    assert notification_service.send_mail("staff@example.com", "Hello", "Body") is False


def test_new_order_mail(app, client, make_product, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example.com", ORDER_NOTIFICATION_EMAIL="staff@example.com")
    sent = []
    monkeypatch.setattr(notification_service.threading, "Thread", ImmediateThread)
    monkeypatch.setattr(notification_service, "_deliver", lambda settings, message: sent.append(message))

    product = make_product()
    resp = client.post("/api/orders", json=guest_order_payload(product.id, quantity=2))

    assert resp.status_code == 201
    assert len(sent) == 1
    assert sent[0]["To"] == "staff@example.com"
    assert sent[0]["Subject"] == f"New order #{resp.json['order']['id']}"
    assert "2 x Linen Shirt" in sent[0].get_content()


def test_delivery_failure_does_not_fail_checkout(app, client, make_product, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example.com", ORDER_NOTIFICATION_EMAIL="staff@example.com")

    def broken_send_mail(*args, **kwargs):
        raise RuntimeError("mail server exploded")

    monkeypatch.setattr(notification_service, "send_mail", broken_send_mail)

    product = make_product()
    resp = client.post("/api/orders", json=guest_order_payload(product.id))
    assert resp.status_code == 201
