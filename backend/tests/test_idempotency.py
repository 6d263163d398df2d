"""
Idempotency guard tests.

Verifies:
- Same key returns the same order and creates exactly one
- Oversized keys are rejected before any work happens
- Failed requests are not cached
- Concurrent duplicates run the handler once, also through the checkout route
- TTL expiry and nearest-expiry eviction
"""

import threading
import time

import pytest

from conftest import guest_order_payload
from shopadmin.errors import ValidationError
from shopadmin.extensions import db
from shopadmin.models import Order
from shopadmin.services.idempotency import (
    IdempotencyStore,
    extract_order_id,
    normalize_key,
    with_idempotency,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


# =============================================================================
# CHECKOUT ROUTE
# =============================================================================


class TestCheckoutIdempotency:

    def test_same_key_returns_same_order(self, client, make_product):
        product = make_product(stock=5)
        headers = {"Idempotency-Key": "checkout-abc"}

        first = client.post("/api/orders", json=guest_order_payload(product.id), headers=headers)
        second = client.post("/api/orders", json=guest_order_payload(product.id), headers=headers)

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json["order"]["id"] == second.json["order"]["id"]
        assert "Idempotent-Replayed" not in first.headers
        assert second.headers["Idempotent-Replayed"] == "true"
        assert db.session.query(Order).count() == 1

    def test_different_keys_create_different_orders(self, client, make_product):
        product = make_product(stock=5)
        client.post("/api/orders", json=guest_order_payload(product.id), headers={"Idempotency-Key": "a"})
        client.post("/api/orders", json=guest_order_payload(product.id), headers={"Idempotency-Key": "b"})
        assert db.session.query(Order).count() == 2

    def test_no_key_means_no_dedup(self, client, make_product):
        product = make_product(stock=5)
        client.post("/api/orders", json=guest_order_payload(product.id))
        client.post("/api/orders", json=guest_order_payload(product.id), headers={"Idempotency-Key": "   "})
        assert db.session.query(Order).count() == 2

    def test_oversized_key_rejected(self, client, make_product):
        product = make_product(stock=5)
        resp = client.post("/api/orders", json=guest_order_payload(product.id), headers={"Idempotency-Key": "k" * 129})

        assert resp.status_code == 400
        assert db.session.query(Order).count() == 0

    def test_max_length_key_accepted(self, client, make_product):
        product = make_product(stock=5)
        resp = client.post("/api/orders", json=guest_order_payload(product.id), headers={"Idempotency-Key": "k" * 128})
        assert resp.status_code == 201

    def test_failed_attempt_is_not_cached(self, client, make_product):
        product = make_product(stock=1)
        headers = {"Idempotency-Key": "retry-me"}

        failed = client.post("/api/orders", json=guest_order_payload(product.id, quantity=2), headers=headers)
        assert failed.status_code == 400

        retried = client.post("/api/orders", json=guest_order_payload(product.id, quantity=1), headers=headers)
        assert retried.status_code == 201
        assert db.session.query(Order).count() == 1

    def test_concurrent_checkouts_with_same_key_create_one_order(self, app, make_product):
        product_id = make_product(stock=5).id
        responses = []
        start = threading.Barrier(2)

        def worker():
            http = app.test_client()
            start.wait()
            resp = http.post(
                "/api/orders",
                json=guest_order_payload(product_id),
                headers={"Idempotency-Key": "double-click"},
            )
            responses.append((resp.status_code, resp.get_json(), resp.headers.get("Idempotent-Replayed")))

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [status for status, _body, _replayed in responses] == [201, 201]
        assert responses[0][1] == responses[1][1]
        assert sorted(replayed or "" for _status, _body, replayed in responses) == ["", "true"]
        db.session.expire_all()
        assert db.session.query(Order).count() == 1


# =============================================================================
# STORE
# =============================================================================


class TestWithIdempotency:

    def test_runs_handler_once_per_key(self):
        store = IdempotencyStore(ttl_seconds=60, max_keys=10)
        calls = []

        def handler():
            calls.append(1)
            return {"order": {"id": 7}}, 201

        first = with_idempotency(store, "key", handler)
        second = with_idempotency(store, "key", handler)

        assert len(calls) == 1
        assert first.replayed is False
        assert second.replayed is True
        assert second.body == {"order": {"id": 7}}
        assert second.status_code == 201

    def test_replayed_body_is_a_copy(self):
        store = IdempotencyStore(ttl_seconds=60, max_keys=10)
        first = with_idempotency(store, "key", lambda: ({"order": {"id": 7}}, 201))
        first.body["order"]["id"] = 99

        assert with_idempotency(store, "key", lambda: ({}, 500)).body == {"order": {"id": 7}}

    def test_oversized_key_skips_handler(self):
        store = IdempotencyStore(ttl_seconds=60, max_keys=10)
        calls = []
        with pytest.raises(ValidationError):
            with_idempotency(store, "k" * 129, lambda: calls.append(1))
        assert calls == []

    @pytest.mark.parametrize("body,status_code", [
        ({"error": "bad"}, 400),
        ({"order": {"id": 7}}, 500),
        ({"ok": True}, 200),
    ])
    def test_only_successful_orders_are_cached(self, body, status_code):
        store = IdempotencyStore(ttl_seconds=60, max_keys=10)
        with_idempotency(store, "key", lambda: (body, status_code))
        assert len(store) == 0

    def test_concurrent_duplicates_run_once(self):
        store = IdempotencyStore(ttl_seconds=60, max_keys=10)
        calls = []
        results = []
        start = threading.Barrier(8)

        def handler():
            calls.append(1)
            time.sleep(0.05)
            return {"order": {"id": len(calls)}}, 201

        def worker():
            start.wait()
            results.append(with_idempotency(store, "same-key", handler))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert {outcome.body["order"]["id"] for outcome in results} == {1}
        assert sum(1 for outcome in results if outcome.replayed) == 7


class TestStoreLimits:

    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        store = IdempotencyStore(ttl_seconds=60, max_keys=10, clock=clock)
        store.put("key", 1, 201, {"order": {"id": 1}})

        clock.now += 59
        assert store.get("key") is not None
        clock.now += 1
        assert store.get("key") is None
        assert len(store) == 0

    def test_expired_key_runs_handler_again(self):
        clock = FakeClock()
        store = IdempotencyStore(ttl_seconds=60, max_keys=10, clock=clock)
        with_idempotency(store, "key", lambda: ({"order": {"id": 1}}, 201))

        clock.now += 61
        outcome = with_idempotency(store, "key", lambda: ({"order": {"id": 2}}, 201))
        assert outcome.replayed is False
        assert outcome.body["order"]["id"] == 2

    def test_evicts_nearest_expiry_when_full(self):
        clock = FakeClock()
        store = IdempotencyStore(ttl_seconds=60, max_keys=2, clock=clock)
        store.put("oldest", 1, 201, {"order": {"id": 1}})
        clock.now += 1
        store.put("middle", 2, 201, {"order": {"id": 2}})
        clock.now += 1
        store.put("newest", 3, 201, {"order": {"id": 3}})

        assert len(store) == 2
        assert store.get("oldest") is None
        assert store.get("middle") is not None
        assert store.get("newest") is not None

    def test_prune(self):
        clock = FakeClock()
        store = IdempotencyStore(ttl_seconds=10, max_keys=10, clock=clock)
        store.put("a", 1, 201, {})
        store.put("b", 2, 201, {})
        clock.now += 10
        assert store.prune() == 2


class TestHelpers:

    @pytest.mark.parametrize("raw,expected", [
        (None, None),
        ("", None),
        ("   ", None),
        ("  abc ", "abc"),
    ])
    def test_normalize_key(self, raw, expected):
        assert normalize_key(raw) == expected

    @pytest.mark.parametrize("body,expected", [
        ({"order": {"id": 5}}, 5),
        ({"order_id": 6}, 6),
        ({"order": {}}, None),
        ([], None),
    ])
    def test_extract_order_id(self, body, expected):
        assert extract_order_id(body) == expected
