"""
Health checks.

    GET /api/v1/health         process is up
    GET /api/v1/health/ready   503 while the database cannot answer ``SELECT 1``
    GET /api/v1/health/live    per-dependency report (database, limiter storage, LLM provider)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from scorecard.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")

APP_NAME = "Strategic Scorecard"


def _ping_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as exc:
        db.session.rollback()
        logger.error("Database ping failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "app": APP_NAME})


@health_bp.route("/ready", methods=["GET"])
def ready():
    database = _ping_database()
    if database["status"] == "ok":
        return jsonify({"status": "ok"})
    return jsonify({"status": "unavailable", "database": database}), 503


@health_bp.route("/live", methods=["GET"])
def live():
    cfg = current_app.config
    database = _ping_database()
    healthy = database["status"] == "ok"
    checks = {
        "database": database,
        "rate_limit_storage": {"status": "configured" if cfg.get("REDIS_URL") else "memory"},
        "ai": {
            "provider": "openai" if cfg.get("OPENAI_API_KEY") else "local-stub",
            "model": cfg.get("LLM_DEFAULT_CHAT_MODEL"),
        },
        "app": {"name": APP_NAME, "debug": current_app.debug, "testing": current_app.testing},
    }
    return jsonify({"status": "healthy" if healthy else "degraded", "checks": checks}), (
        200 if healthy else 503
    )
