"""
Per-blueprint rate limits (Flask-Limiter, keyed by remote address).

The ``Limiter`` in ``scorecard/__init__.py`` has no default limit; this
module attaches one limit per blueprint group and exempts the health checks.
Nothing is applied when ``TESTING`` is set.
"""

import logging

logger = logging.getLogger(__name__)

AI_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"

BLUEPRINT_LIMITS = {
    "ai": AI_LIMIT,
    "scorecard": WRITE_LIMIT,
    "admin": WRITE_LIMIT,
    "alignment": WRITE_LIMIT,
    "content": READ_LIMIT,
}
EXEMPT_BLUEPRINTS = ("health",)


def init_rate_limits(app, limiter):
    if app.config.get("TESTING"):
        logger.debug("Rate limits skipped under TESTING")
        return

    for name, limit in BLUEPRINT_LIMITS.items():
        blueprint = app.blueprints.get(name)
        if blueprint is not None:
            limiter.limit(limit)(blueprint)
    for name in EXEMPT_BLUEPRINTS:
        blueprint = app.blueprints.get(name)
        if blueprint is not None:
            limiter.exempt(blueprint)

    logger.info("Rate limits: ai=%s write=%s read=%s", AI_LIMIT, WRITE_LIMIT, READ_LIMIT)
