"""
Spreadsheet importer: planning workbooks → ORD hierarchy tables.

Four workbooks, first sheet of each, header row first:

    StrategicPillars.xlsx          StrategicPillarID, Strategic Pillar
    Category-status-comments.xlsx  CategoryID, Category, StrategicPillarID, Status, Comments
    Strategic-Goals.xlsx           StrategicGoalID, Strategic Goal, CategoryID,
                                   StrategicPillarID, Status, Comments
    DummyData.xlsx                 StrategicProgramID, Strategic Program, StrategicGoalID,
                                   CategoryID, StrategicPillarID, Q<n> Objective, Q<n> Status,
                                   ORD LT Sponsor(s), Sponsor(s)/Lead(s),
                                   Reporting owner(s), Progress Updates

The import replaces the four hierarchy tables wholesale inside one
transaction.  Alignments, functional programs and the progress history are
left alone.
"""
import logging
import os
import re

from flask import current_app
from openpyxl import load_workbook
from sqlalchemy.exc import SQLAlchemyError

from scorecard.core.enums import (
    BRAG_STATUS_MAP,
    KIND_OBJECTIVE,
    KIND_STATUS,
    QUARTER_COLUMNS,
    STATUSES,
)
from scorecard.models import db
from scorecard.models.scorecard import (
    Category, StrategicGoal, StrategicPillar, StrategicProgram,
)
from scorecard.utils.helpers import split_names

logger = logging.getLogger(__name__)

PILLARS_FILE = "StrategicPillars.xlsx"
CATEGORIES_FILE = "Category-status-comments.xlsx"
GOALS_FILE = "Strategic-Goals.xlsx"
PROGRAMS_FILE = "DummyData.xlsx"

DEFAULT_FILES = {
    "pillars": PILLARS_FILE,
    "categories": CATEGORIES_FILE,
    "goals": GOALS_FILE,
    "programs": PROGRAMS_FILE,
}

# "Q1 Objective", "Q3 Status", "Q1 2026 Objective", "q2-2025 status"
_QUARTER_HEADER_RE = re.compile(
    r"^q([1-4])(?:[\s_-]+(\d{4}))?\s+(objective|status)$", re.IGNORECASE,
)

PEOPLE_HEADERS = {
    "ORD LT Sponsor(s)": "ord_lt_sponsors",
    "Sponsor(s)/Lead(s)": "sponsors_leads",
    "Reporting owner(s)": "reporting_owners",
}


class WorkbookImportError(Exception):
    """A workbook is missing, unreadable, or the import failed to commit."""


# ═════════════════════════════════════════════════════════════════════════════
# Cell helpers
# ═════════════════════════════════════════════════════════════════════════════


def map_status(value):
    """Spreadsheet status (BRAG colour or internal value) → internal status or None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "undefined":
        return None
    lowered = text.lower()
    if lowered in BRAG_STATUS_MAP:
        return BRAG_STATUS_MAP[lowered]
    if lowered in STATUSES:
        return lowered
    logger.warning("Unknown status value in workbook: %r", text)
    return None


def _cell_str(value) -> str | None:
    """Cell → stripped string; ints stored as floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def read_workbook_rows(path: str) -> list[dict]:
    """Read the first sheet of ``path`` as a list of header-keyed dicts.

    Fully blank rows are dropped.

    Raises:
        WorkbookImportError: file missing or not a readable workbook.
    """
    if not os.path.isfile(path):
        raise WorkbookImportError(f"Workbook not found: {path}")
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise WorkbookImportError(f"Cannot read workbook {path}: {exc}") from exc

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        keys = [_cell_str(h) for h in header]
        result = []
        for values in rows:
            if values is None or all(v is None or str(v).strip() == "" for v in values):
                continue
            result.append({k: v for k, v in zip(keys, values) if k})
        return result
    finally:
        wb.close()


def _quarter_fields(row: dict, default_year: int) -> dict:
    """Map ``Q<n> [<year>] Objective|Status`` headers onto quarter columns."""
    fields = {}
    for header, value in row.items():
        match = _QUARTER_HEADER_RE.match(header.strip())
        if not match:
            continue
        quarter, year, kind = match.groups()
        year = int(year) if year else default_year
        kind = kind.lower()
        column = QUARTER_COLUMNS.get((f"q{quarter}_{year}", kind))
        if column is None:
            logger.warning("Ignoring untracked quarter column %r", header)
            continue
        if kind == KIND_STATUS:
            fields[column] = map_status(value)
        elif kind == KIND_OBJECTIVE:
            fields[column] = _cell_str(value)
    return fields


# ═════════════════════════════════════════════════════════════════════════════
# Row builders
# ═════════════════════════════════════════════════════════════════════════════


def _build_pillars(rows, counts):
    seen = {}
    for row in rows:
        pillar_id = _cell_str(row.get("StrategicPillarID"))
        name = _cell_str(row.get("Strategic Pillar"))
        if not (pillar_id and name) or pillar_id in seen:
            counts["skipped"] += 1
            continue
        seen[pillar_id] = StrategicPillar(id=pillar_id, name=name)
    return seen


def _build_categories(rows, pillars, counts):
    seen = {}
    for row in rows:
        category_id = _cell_str(row.get("CategoryID"))
        name = _cell_str(row.get("Category"))
        pillar_id = _cell_str(row.get("StrategicPillarID"))
        if not (category_id and name and pillar_id in pillars) or category_id in seen:
            logger.info("Skipping category row %r: missing relationships", category_id)
            counts["skipped"] += 1
            continue
        seen[category_id] = Category(
            id=category_id,
            name=name,
            pillar_id=pillar_id,
            status=map_status(row.get("Status")),
            comments=_cell_str(row.get("Comments")),
        )
    return seen


def _build_goals(rows, categories, default_year, counts):
    seen = {}
    for row in rows:
        goal_id = _cell_str(row.get("StrategicGoalID"))
        text = _cell_str(row.get("Strategic Goal"))
        category_id = _cell_str(row.get("CategoryID"))
        pillar_id = _cell_str(row.get("StrategicPillarID"))
        category = categories.get(category_id)
        if (not (goal_id and text) or category is None
                or category.pillar_id != pillar_id or goal_id in seen):
            logger.info("Skipping goal row %r: missing relationships", goal_id)
            counts["skipped"] += 1
            continue
        seen[goal_id] = StrategicGoal(
            id=goal_id,
            text=text,
            category_id=category_id,
            pillar_id=pillar_id,
            status=map_status(row.get("Status")),
            comments=_cell_str(row.get("Comments")),
            **_quarter_fields(row, default_year),
        )
    return seen


def _build_programs(rows, goals, default_year, counts):
    seen = {}
    for row in rows:
        program_id = _cell_str(row.get("StrategicProgramID"))
        text = _cell_str(row.get("Strategic Program"))
        goal_id = _cell_str(row.get("StrategicGoalID"))
        category_id = _cell_str(row.get("CategoryID"))
        pillar_id = _cell_str(row.get("StrategicPillarID"))
        goal = goals.get(goal_id)
        if (not (program_id and text) or goal is None
                or goal.category_id != category_id or goal.pillar_id != pillar_id
                or program_id in seen):
            logger.info("Skipping program row %r: missing relationships", program_id)
            counts["skipped"] += 1
            continue
        people = {attr: split_names(row.get(header)) for header, attr in PEOPLE_HEADERS.items()}
        seen[program_id] = StrategicProgram(
            id=program_id,
            text=text,
            goal_id=goal_id,
            category_id=category_id,
            pillar_id=pillar_id,
            progress_updates=_cell_str(row.get("Progress Updates")),
            **people,
            **_quarter_fields(row, default_year),
        )
    return seen


# ═════════════════════════════════════════════════════════════════════════════
# Import
# ═════════════════════════════════════════════════════════════════════════════


def import_workbooks(data_dir: str, files: dict | None = None,
                     default_year: int | None = None) -> dict:
    """Replace the ORD hierarchy with the contents of the workbooks in ``data_dir``.

    Returns:
        {"pillars": {"inserted": n, "skipped": m}, "categories": {...}, ...}

    Raises:
        WorkbookImportError: unreadable input or a database failure; nothing
            is written in either case.
    """
    files = {**DEFAULT_FILES, **(files or {})}
    if default_year is None:
        default_year = current_app.config["SCORECARD_DEFAULT_YEAR"]

    sheets = {
        table: read_workbook_rows(os.path.join(data_dir, filename))
        for table, filename in files.items()
    }
    counts = {table: {"inserted": 0, "skipped": 0} for table in DEFAULT_FILES}

    pillars = _build_pillars(sheets["pillars"], counts["pillars"])
    categories = _build_categories(sheets["categories"], pillars, counts["categories"])
    goals = _build_goals(sheets["goals"], categories, default_year, counts["goals"])
    programs = _build_programs(sheets["programs"], goals, default_year, counts["programs"])

    try:
        for model in (StrategicProgram, StrategicGoal, Category, StrategicPillar):
            db.session.query(model).delete()
        db.session.flush()
        for table, built in (
            ("pillars", pillars), ("categories", categories),
            ("goals", goals), ("programs", programs),
        ):
            db.session.add_all(built[key] for key in sorted(built))
            db.session.flush()
            counts[table]["inserted"] = len(built)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Workbook import failed: %s", exc)
        raise WorkbookImportError(f"Import failed: {exc}") from exc

    logger.info(
        "Imported workbooks from %s: %s",
        data_dir, ", ".join(f"{t}={c['inserted']}/{c['skipped']}" for t, c in counts.items()),
    )
    return counts
