# backend/storefront/routes/system.py
"""
System health endpoint.

Checks database connectivity and reports the number of accounts and products
so a deployment can tell an empty database from an unreachable one.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Product, User
from ..permissions import ROLE_ADMIN
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        product_count = db.session.query(Product).count()
        admin_exists = db.session.query(User.id).filter(User.role == ROLE_ADMIN).first() is not None

        elapsed_ms = (time.time() - start_time) * 1000

        result = {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "products": product_count,
            }
        }
        if not admin_exists:
            # Reachable but unseeded
            result["status"] = "degraded"
            result["warning"] = "No admin account; run `flask system init`"
        return result
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    database_health = check_database_health()

    http_status = 503 if database_health["status"] == "unhealthy" else 200
    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status
