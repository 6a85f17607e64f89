"""
System health endpoint.

Used by load balancers and the client's connectivity check; no auth.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from rentara.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
        }
    except Exception as exc:
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {"status": "unhealthy", "error": str(exc)}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), 200 if healthy else 503
