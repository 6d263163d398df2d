# Overview: In-process idempotency cache for order creation.

"""
Idempotency Guard

WHY: Checkout clients retry on flaky networks. A retried POST carrying the
same Idempotency-Key must return the original order instead of creating a
second one.

BEHAVIOUR:
- No key (absent or blank after trimming): the handler just runs
- Key longer than 128 characters: ValidationError before the handler runs
- Cached, unexpired entry: the stored response is returned verbatim
- Otherwise the handler runs; a 2xx response that carries an order id is cached

CONCURRENCY: Requests sharing a key serialize on a per-key lock stripe, so two
simultaneous duplicates run the handler once and the second one replays the
first one's response. The cache dict itself is guarded by a separate mutex.

LIMITS: Entries live IDEMPOTENCY_TTL_SECONDS (24h). When the store holds
IDEMPOTENCY_MAX_KEYS entries the ones closest to expiry are evicted first.

Process-local: a multi-instance deployment needs a shared store instead.
"""

from __future__ import annotations

import copy
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..errors import ValidationError


IDEMPOTENCY_HEADER = "Idempotency-Key"
MAX_KEY_LENGTH = 128
LOCK_STRIPES = 64


@dataclass
class CachedResponse:
    order_id: int
    status_code: int
    body: dict
    expires_at: float


@dataclass
class IdempotentOutcome:
    body: dict
    status_code: int
    replayed: bool = False


class IdempotencyStore:
    def __init__(self, ttl_seconds: float, max_keys: int, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._entries: dict[str, CachedResponse] = {}
        self._mutex = threading.Lock()
        self._key_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def __len__(self) -> int:
        with self._mutex:
            return len(self._entries)

    def lock_for(self, key: str) -> threading.Lock:
        return self._key_locks[hash(key) % LOCK_STRIPES]

    def get(self, key: str) -> CachedResponse | None:
        with self._mutex:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry

    def put(self, key: str, order_id: int, status_code: int, body: dict) -> None:
        with self._mutex:
            self._prune_locked()
            if key not in self._entries:
                overflow = len(self._entries) - self.max_keys + 1
                if overflow > 0:
                    nearest = sorted(self._entries.items(), key=lambda item: item[1].expires_at)[:overflow]
                    for stale_key, _ in nearest:
                        del self._entries[stale_key]
            self._entries[key] = CachedResponse(
                order_id=order_id,
                status_code=status_code,
                body=copy.deepcopy(body),
                expires_at=self._clock() + self.ttl_seconds,
            )

    def prune(self) -> int:
        """Drop expired entries; returns how many were removed."""
        with self._mutex:
            return self._prune_locked()

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)


def normalize_key(raw: str | None) -> str | None:
    if raw is None:
        return None
    key = raw.strip()
    if not key:
        return None
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(
            f"{IDEMPOTENCY_HEADER} must be at most {MAX_KEY_LENGTH} characters",
            details={"field": IDEMPOTENCY_HEADER},
        )
    return key


def extract_order_id(body) -> int | None:
    if not isinstance(body, dict):
        return None
    order = body.get("order")
    if isinstance(order, dict) and order.get("id") is not None:
        return order["id"]
    return body.get("order_id")


def with_idempotency(
    store: IdempotencyStore,
    raw_key: str | None,
    handler: Callable[[], tuple[dict, int]],
) -> IdempotentOutcome:
    """
    Run `handler` at most once per key within the TTL.

    `handler` returns (body, status_code).
    """
    key = normalize_key(raw_key)
    if key is None:
        body, status_code = handler()
        return IdempotentOutcome(body=body, status_code=status_code)

    with store.lock_for(key):
        cached = store.get(key)
        if cached is not None:
            return IdempotentOutcome(body=copy.deepcopy(cached.body), status_code=cached.status_code, replayed=True)

        body, status_code = handler()
        order_id = extract_order_id(body)
        if 200 <= status_code < 300 and order_id is not None:
            store.put(key, order_id, status_code, body)
        return IdempotentOutcome(body=body, status_code=status_code)
