"""Shared utility functions.

parse_int:        query-string integers with a fallback
parse_bool:       "true"/"1"/"yes" style flags
split_names:      sponsor / owner cells → list of names
truncate:         bounded text with a marker
transaction:      commit-or-rollback scope for service writes
"""
import logging
import re
from contextlib import contextmanager

from scorecard.models import db

logger = logging.getLogger(__name__)

_NAME_SPLIT_RE = re.compile(r"[;\n]+")


def parse_int(value, default):
    """Return ``int(value)`` or ``default`` for empty / non-numeric input."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def split_names(value) -> list[str]:
    """Normalise a people field to a list of names.

    Accepts a list (kept, blanks dropped) or a string separated by ``;``
    or newlines, which is how the planning workbooks store them.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [part.strip() for part in _NAME_SPLIT_RE.split(str(value)) if part.strip()]


def truncate(text: str, max_chars: int, marker: str = "...[truncated]") -> str:
    if text is None or len(text) <= max_chars:
        return text
    return text[:max_chars] + marker


# ── Database transaction helper ──────────────────────────────────────────────

@contextmanager
def transaction():
    """Commit the session on success, roll back and re-raise on any failure.

    Usage::

        with transaction():
            db.session.add(row)

    Service-layer exceptions (NotFoundError, ValidationError, ...) raised
    inside the block leave the database untouched.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
