# Overview: Store connectivity probe and the degraded-mode flag.

"""
Degraded Mode

WHY: The admin panel must stay reachable when the database is down so the
operator can still log in (bootstrap credential) and see what is wrong.

The factory probes the store once at boot and records the result in
app.extensions. Reads check the flag and answer empty payloads; writes fail
fast with StoreUnavailableError. The health endpoint re-probes, so a store
that comes back is picked up without a restart.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError

from .extensions import db

STORE_STATE_KEY = "shopadmin.store_available"


def probe_store() -> bool:
    """Run a trivial query; True when the store answers."""
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except (OperationalError, DBAPIError):
        db.session.rollback()
        return False


def set_store_available(app, available: bool) -> None:
    app.extensions[STORE_STATE_KEY] = available


def is_store_available() -> bool:
    return bool(current_app.extensions.get(STORE_STATE_KEY, True))


def refresh_store_state() -> bool:
    available = probe_store()
    previous = is_store_available()
    if available != previous:
        current_app.logger.warning(
            "Database connectivity changed: %s", "connected" if available else "unavailable"
        )
    set_store_available(current_app, available)
    return available
