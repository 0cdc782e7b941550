"""
Request timing middleware.

Every response carries ``X-Request-ID`` (echoed from the request when the
caller sent one) and ``X-Request-Duration-Ms``.  Server errors are logged
at ERROR, requests slower than ``SLOW_REQUEST_MS`` at WARNING, the rest at
DEBUG.  Health checks are never logged.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

QUIET_PATHS = frozenset({"/api/v1/health", "/api/v1/health/ready", "/api/v1/health/live"})

DEFAULT_SLOW_MS = 1000


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def init_request_timing(app: Flask):
    """Register the before/after request hooks on ``app``."""
    slow_ms = app.config.get("SLOW_REQUEST_MS", DEFAULT_SLOW_MS)

    @app.before_request
    def _begin():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or _new_request_id()

    @app.after_request
    def _finish(response):
        started = g.pop("request_start", None)
        if started is None:
            return response

        elapsed = (time.perf_counter() - started) * 1000
        request_id = g.get("request_id", "")
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed:.1f}"
        if request.path in QUIET_PATHS:
            return response

        if response.status_code >= 500:
            level, label = logging.ERROR, "Server error"
        elif elapsed > slow_ms:
            level, label = logging.WARNING, "Slow request"
        else:
            level, label = logging.DEBUG, "Request"
        logger.log(
            level, "%s: %s %s %d (%.0fms)",
            label, request.method, request.path, response.status_code, elapsed,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": elapsed,
                "remote_addr": request.remote_addr,
            },
        )
        return response
