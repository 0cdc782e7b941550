"""
Quarter parsing, normalisation and visibility windows.

Two spellings are in circulation:
    - column keys   "q2_2025"  (what the database and update API use)
    - labels        "Q2-2025"  (what start_quarter / end_quarter hold)

Both, plus "q2 2025", "2-2025" and a bare "q2", are accepted on input.
"""

import logging
import re
from datetime import date

from scorecard.core.enums import QUARTER_KEYS, quarter_column_name
from scorecard.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_QUARTER_RE = re.compile(r"^q?([1-4])(?:[-_ ]+(\d{4}))?$")


def parse_quarter(raw: str | None, default_year: int | None = None) -> tuple[int, int] | None:
    """Parse a quarter string into ``(year, quarter)``.

    Returns None when the input is empty or unrecognised.  A bare quarter
    ("q3") resolves against ``default_year``; without one it is rejected.
    """
    if not raw:
        return None
    cleaned = re.sub(r"\s+", " ", str(raw).strip().lower())
    match = _QUARTER_RE.match(cleaned)
    if not match:
        return None
    quarter = int(match.group(1))
    if match.group(2):
        year = int(match.group(2))
    elif default_year is not None:
        year = int(default_year)
    else:
        return None
    if year < 1900 or year > 3000:
        return None
    return year, quarter


def normalize_quarter(raw: str | None, default_year: int) -> str:
    """Return the tracked column key (``q2_2025``) for a caller-supplied quarter.

    Raises:
        ValidationError: missing, unparseable or untracked quarter.
    """
    if not raw:
        raise ValidationError("quarter is required", details={"quarter": "missing"})
    parsed = parse_quarter(raw, default_year)
    if parsed is None:
        raise ValidationError(f"Invalid quarter: {raw!r}", details={"quarter": str(raw)})
    year, quarter = parsed
    key = f"q{quarter}_{year}"
    if key not in QUARTER_KEYS:
        raise ValidationError(
            f"Quarter {key} is not tracked",
            details={"quarter": key, "allowed": list(QUARTER_KEYS)},
        )
    return key


def quarter_column(quarter_key: str, kind: str) -> str:
    """Column for a normalised quarter key and field kind (``q3_2025``, ``status``).

    Raises:
        ValidationError: the pair is outside the tracked column map.
    """
    try:
        return quarter_column_name(quarter_key, kind)
    except KeyError:
        raise ValidationError(
            f"No {kind} column for quarter {quarter_key}",
            details={"quarter": quarter_key, "kind": kind},
        ) from None


def quarter_label(year: int, quarter: int) -> str:
    return f"Q{quarter}-{year}"


def parse_quarter_label(label: str | None) -> tuple[int, int] | None:
    """``"Q3-2025"`` → ``(2025, 3)``.  Labels always carry a year."""
    return parse_quarter(label)


def compare_quarters(a: tuple[int, int], b: tuple[int, int]) -> int:
    """-1, 0 or 1 as ``a`` is before, equal to or after ``b``."""
    return (a > b) - (a < b)


def is_item_visible(selected: str | None, start_quarter: str | None, end_quarter: str | None) -> bool:
    """Decide whether a node with a start/end window shows for ``selected``.

    No bounds → always visible.  Only a start → from that quarter on.
    Only an end → up to and including it.  Both → inclusive range.
    An unparseable selection shows everything.
    """
    if not start_quarter and not end_quarter:
        return True

    chosen = parse_quarter(selected)
    if chosen is None:
        logger.warning("Unable to parse selected quarter: %r", selected)
        return True

    start = parse_quarter_label(start_quarter)
    end = parse_quarter_label(end_quarter)

    if start and compare_quarters(chosen, start) < 0:
        return False
    if end and compare_quarters(chosen, end) > 0:
        return False
    return True


def current_quarter(today: date | None = None) -> dict:
    """Quarter containing ``today`` as ``{quarter, year, label, key, progress_column}``."""
    today = today or date.today()
    quarter = (today.month - 1) // 3 + 1
    return _quarter_info(today.year, quarter)


def previous_quarter(today: date | None = None) -> dict:
    today = today or date.today()
    quarter = (today.month - 1) // 3 + 1
    year = today.year
    if quarter == 1:
        quarter, year = 4, year - 1
    else:
        quarter -= 1
    return _quarter_info(year, quarter)


def _quarter_info(year: int, quarter: int) -> dict:
    key = f"q{quarter}_{year}"
    return {
        "quarter": quarter,
        "year": year,
        "label": quarter_label(year, quarter),
        "key": key,
        "progress_column": f"{key}_progress",
    }
