"""JSON error envelope shared by every blueprint.

Body shape::

    {"error": "<message>", "code": "ERR_...", "details": {...}}   # details optional

Blueprints call ``register_error_handlers(bp)`` once; services then raise
the domain exceptions from ``scorecard.core.exceptions`` and never build
responses themselves.
"""

from __future__ import annotations

import logging

from flask import jsonify, request

from scorecard.core.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class E:
    """Error codes."""

    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"   # 400
    NOT_FOUND = "ERR_NOT_FOUND"                     # 404
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"   # 409
    CONFLICT_DEPENDENCY = "ERR_CONFLICT_DEPENDENCY"  # 409
    UPSTREAM = "ERR_UPSTREAM"                       # 502
    INTERNAL = "ERR_INTERNAL"                       # 500


STATUS_BY_CODE = {
    E.VALIDATION_INVALID: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_DEPENDENCY: 409,
    E.UPSTREAM: 502,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for ``code``; ``status`` overrides the code's default."""
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or STATUS_BY_CODE.get(code, 400)


def register_error_handlers(bp) -> None:
    """Translate domain exceptions raised under ``bp`` into the envelope."""

    @bp.errorhandler(NotFoundError)
    def _not_found(error):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _invalid(error):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _conflict(error):
        if error.count is None:
            return api_error(E.CONFLICT_DUPLICATE, str(error))
        return api_error(
            E.CONFLICT_DEPENDENCY, str(error),
            details={"dependents": error.field, "count": error.count},
        )

    @bp.errorhandler(Exception)
    def _unexpected(error):
        # abort(4xx/5xx) keeps its status
        status = getattr(error, "code", None)
        if isinstance(status, int) and 400 <= status < 600:
            return jsonify({"error": getattr(error, "description", str(error))}), status
        logger.exception("Unhandled error in %s (endpoint=%s)", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
