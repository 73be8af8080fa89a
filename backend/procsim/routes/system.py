# backend/procsim/routes/system.py
"""
System health and version endpoints.

Health checks the Record Store database; version is for deployment debugging.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import User, TrainingTask, MarketData
from procsim.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity with a few cheap counts."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        task_count = db.session.query(TrainingTask).count()
        market_count = db.session.query(MarketData).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "tasks": task_count,
                "market_categories": market_count,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    start_time = time.time()
    database_health = check_database_health()

    http_status = 200 if database_health["status"] == "healthy" else 503
    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {"database": database_health},
    }, http_status


@system_bp.get("/version")
def version():
    env = "production" if not current_app.debug else "development"
    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
