# Overview: Health and version endpoints.

import time

from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Store, User


system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Database connectivity with a trivial count per core table."""
    start_time = time.time()
    try:
        store_count = db.session.query(Store).count()
        user_count = db.session.query(User).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"stores": store_count, "users": user_count},
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    status = 200 if database["status"] == "healthy" else 503
    return jsonify({"status": database["status"], "database": database}), status


@system_bp.get("/api/version")
def version():
    return jsonify({
        "name": "retailhub",
        "version": current_app.config.get("VERSION", "0.1.0"),
        "currency": current_app.config.get("CURRENCY_CODE"),
    }), 200
