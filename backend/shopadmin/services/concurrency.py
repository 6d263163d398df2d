# Overview: Transaction helpers for row locking and retrying transient store failures.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for read-modify-write paths (status changes,
    payment confirmation).

    Eager joins are switched off: PostgreSQL refuses FOR UPDATE on the
    nullable side of the LEFT OUTER JOIN a joined relationship adds (for
    example Order.payment). Relationships load lazily afterwards.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the conditional stock UPDATE
    in payment_service is what keeps stock consistent there.
    """
    return query.enable_eagerloads(False).with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Run a unit of work, retrying on lock timeouts / deadlocks.

    The session is rolled back before every retry so each attempt starts from
    fresh state. Domain errors raised by `func` propagate immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Transient database error, retrying (attempt %d of %d)", attempt + 2, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))
