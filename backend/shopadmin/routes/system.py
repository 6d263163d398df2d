# backend/shopadmin/routes/system.py
"""
System health endpoint.

Re-probes the database on every call so a store that recovers takes the
app out of degraded mode without a restart.
"""

import time

from flask import Blueprint, jsonify

from ..database import refresh_store_state

system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
def health():
    start_time = time.time()
    db_connected = refresh_store_state()
    elapsed_ms = (time.time() - start_time) * 1000
    return jsonify({
        "status": "ok",
        "dbConnected": db_connected,
        "latency_ms": round(elapsed_ms, 2),
    })
