"""Admin console service: create / update / delete per hierarchy table.

Transaction policy: every public function here owns its transaction and
commits (or rolls back) before returning.

Extracted operations:
- Create with sequential ``prefix-NNN`` ids from the ``id_sequences`` counter
- Update through an explicit per-table field list; unknown keys are rejected
- Parent-chain derivation for goals and programs (cached pillar/category ids)
- Delete with dependent-row checks (409 on conflict)
- Cascading dropdown options
- Progress-update history feed
"""
import logging
import re

from scorecard.core.enums import (
    GOAL_QUARTER_COLUMNS,
    ID_PREFIXES,
    OPTION_TYPES,
    PROGRAM_QUARTER_COLUMNS,
    STATUS_LABELS,
    STATUSES,
)
from scorecard.core.exceptions import NotFoundError, ValidationError
from scorecard.core.quarters import parse_quarter, quarter_label
from scorecard.models import db
from scorecard.models.audit import ProgressUpdateHistory, record_progress_change
from scorecard.models.scorecard import (
    Category, IdSequence, StrategicGoal, StrategicPillar, StrategicProgram,
)
from scorecard.services import table_service
from scorecard.utils.helpers import split_names, transaction

logger = logging.getLogger(__name__)


# ── Field lists ──────────────────────────────────────────────────────────────

_WINDOW_FIELDS = ("start_quarter", "end_quarter")
_PEOPLE_FIELDS = ("ord_lt_sponsors", "sponsors_leads", "reporting_owners")

REQUIRED_FIELDS = {
    "pillars": ("name",),
    "categories": ("name", "pillar_id"),
    "goals": ("text", "category_id"),
    "programs": ("text", "goal_id"),
    "functional-programs": ("text",),
}

WRITABLE_FIELDS = {
    "pillars": ("name",) + _WINDOW_FIELDS,
    "categories": ("name", "pillar_id", "status", "comments") + _WINDOW_FIELDS,
    "goals": (
        ("text", "category_id", "pillar_id", "status", "comments", "progress_updates")
        + _PEOPLE_FIELDS + GOAL_QUARTER_COLUMNS + _WINDOW_FIELDS
    ),
    "programs": (
        ("text", "goal_id", "category_id", "pillar_id", "progress_updates")
        + _PEOPLE_FIELDS + PROGRAM_QUARTER_COLUMNS + _WINDOW_FIELDS
    ),
    "functional-programs": (
        ("text", "pillar", "category", "strategic_goal", "function",
         "linked_ord_program_id", "progress_updates")
        + _PEOPLE_FIELDS + PROGRAM_QUARTER_COLUMNS + _WINDOW_FIELDS
    ),
}

_ID_RE_TEMPLATE = r"^{prefix}-(\d+)$"


# ═════════════════════════════════════════════════════════════════════════════
# Id sequence
# ═════════════════════════════════════════════════════════════════════════════


def _max_existing_suffix(model, prefix: str) -> int:
    pattern = re.compile(_ID_RE_TEMPLATE.format(prefix=re.escape(prefix)))
    highest = 0
    for (row_id,) in db.session.query(model.id).filter(model.id.like(f"{prefix}-%")):
        match = pattern.match(row_id)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_id(table: str) -> str:
    """Issue the next ``prefix-NNN`` id for ``table`` inside the caller's transaction.

    The counter row is locked (``SELECT ... FOR UPDATE``) while it is
    incremented, so concurrent creates never receive the same id.  A missing
    counter is seeded from the highest id already in the table.
    """
    info = table_service.get_table(table)
    prefix = ID_PREFIXES[table]
    seq = db.session.get(IdSequence, prefix, with_for_update=True)
    if seq is None:
        seq = IdSequence(prefix=prefix, last_value=_max_existing_suffix(info.model, prefix))
        db.session.add(seq)
    seq.last_value += 1
    db.session.flush()
    return f"{prefix}-{seq.last_value:03d}"


# ═════════════════════════════════════════════════════════════════════════════
# Validation
# ═════════════════════════════════════════════════════════════════════════════


def _normalize_window(value, field: str):
    if value in (None, ""):
        return None
    parsed = parse_quarter(value)
    if parsed is None:
        raise ValidationError(f"Invalid {field}: {value!r}", details={field: value})
    return quarter_label(*parsed)


def _clean_payload(table: str, data: dict) -> dict:
    """Reject unknown keys and normalise values for ``table``."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    allowed = WRITABLE_FIELDS[table]
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(
            f"Unknown field(s) for {table}: {', '.join(unknown)}",
            details={"unknown": unknown},
        )

    cleaned = {}
    for key, value in data.items():
        if key in _PEOPLE_FIELDS:
            cleaned[key] = split_names(value)
        elif key in _WINDOW_FIELDS:
            cleaned[key] = _normalize_window(value, key)
        elif key == "status" or key.endswith("_status"):
            if value in (None, ""):
                cleaned[key] = None
            elif value not in STATUSES:
                raise ValidationError(
                    f"Invalid status for {key}: {value!r}",
                    details={key: value, "allowed": list(STATUSES)},
                )
            else:
                cleaned[key] = value
        else:
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{key} must be a string", details={key: repr(value)})
            cleaned[key] = value.strip() if isinstance(value, str) and key in ("name", "text") else value
    return cleaned


def _require(table: str, data: dict) -> None:
    missing = [f for f in REQUIRED_FIELDS[table] if not data.get(f)]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}",
            details={f: "required" for f in missing},
        )


def _get_parent(model, row_id, label):
    row = db.session.get(model, row_id) if row_id else None
    if row is None:
        raise ValidationError(f"{label} {row_id!r} does not exist", details={"parent": row_id})
    return row


def _derive_parents(table: str, row, cleaned: dict) -> None:
    """Fill cached ancestor ids from the direct parent and reject contradictions."""
    if table == "categories" and "pillar_id" in cleaned:
        _get_parent(StrategicPillar, cleaned["pillar_id"], "Pillar")

    elif table == "goals":
        category_id = cleaned.get("category_id", row.category_id if row is not None else None)
        category = _get_parent(Category, category_id, "Category")
        _check_consistent(cleaned, "pillar_id", category.pillar_id)
        cleaned["pillar_id"] = category.pillar_id

    elif table == "programs":
        goal_id = cleaned.get("goal_id", row.goal_id if row is not None else None)
        goal = _get_parent(StrategicGoal, goal_id, "Goal")
        _check_consistent(cleaned, "category_id", goal.category_id)
        _check_consistent(cleaned, "pillar_id", goal.pillar_id)
        cleaned["category_id"] = goal.category_id
        cleaned["pillar_id"] = goal.pillar_id

    elif table == "functional-programs" and cleaned.get("linked_ord_program_id"):
        _get_parent(StrategicProgram, cleaned["linked_ord_program_id"], "Program")


def _check_consistent(cleaned: dict, key: str, actual) -> None:
    supplied = cleaned.get(key)
    if supplied and supplied != actual:
        raise ValidationError(
            f"{key} {supplied!r} does not match the parent chain ({actual!r})",
            details={key: {"supplied": supplied, "expected": actual}},
        )


def _record_progress(row, before: dict, changed_by: str | None) -> None:
    if not isinstance(row, StrategicProgram):
        return
    for field, previous in before.items():
        record_progress_change(
            program_id=row.id,
            field=field,
            previous_value=previous,
            new_value=getattr(row, field),
            changed_by=changed_by,
        )


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════


def create_row(table: str, data: dict) -> dict:
    """Insert a row into an admin table and return it."""
    info = table_service.get_table(table)
    cleaned = _clean_payload(table, data)
    _require(table, cleaned)

    with transaction():
        _derive_parents(table, None, cleaned)
        row = info.model(id=next_id(table), **cleaned)
        db.session.add(row)
        db.session.flush()
        result = row.to_dict()

    logger.info("Created %s %s", info.label.lower(), result["id"])
    return result


def update_row(table: str, row_id: str, data: dict, changed_by: str | None = None) -> dict:
    """Apply a partial update.  Progress text changes on programs are audited."""
    info = table_service.get_table(table)
    cleaned = _clean_payload(table, data)
    if not cleaned:
        raise ValidationError("No fields to update")
    for field in REQUIRED_FIELDS[table]:
        if field in cleaned and not cleaned[field]:
            raise ValidationError(f"{field} must not be empty", details={field: "empty"})

    with transaction():
        row = db.session.get(info.model, row_id, with_for_update=True)
        if row is None:
            raise NotFoundError(info.label, row_id)
        _derive_parents(table, row, cleaned)

        before = {
            f: getattr(row, f) for f in cleaned
            if f == "progress_updates" or f.endswith("_progress")
        }
        for key, value in cleaned.items():
            setattr(row, key, value)
        if table == "categories" and "pillar_id" in cleaned:
            _cascade_category_move(row)
        if table == "goals" and "category_id" in cleaned:
            _cascade_goal_move(row)
        db.session.flush()
        _record_progress(row, before, changed_by)
        result = row.to_dict()

    logger.info("Updated %s %s fields=%s", info.label.lower(), row_id, sorted(cleaned))
    return result


def _cascade_category_move(category: Category) -> None:
    """Re-point cached pillar ids below a category that moved to another pillar."""
    for model in (StrategicGoal, StrategicProgram):
        db.session.query(model).filter(model.category_id == category.id).update(
            {"pillar_id": category.pillar_id}, synchronize_session=False,
        )


def _cascade_goal_move(goal: StrategicGoal) -> None:
    """Keep programs' cached ancestor ids in step when their goal changes category."""
    db.session.query(StrategicProgram).filter(StrategicProgram.goal_id == goal.id).update(
        {"category_id": goal.category_id, "pillar_id": goal.pillar_id},
        synchronize_session=False,
    )


def delete_row(table: str, row_id: str) -> None:
    """Delete one row; ConflictError if children still reference it."""
    info = table_service.get_table(table)
    with transaction():
        table_service.delete_rows(info, [row_id])
    logger.info("Deleted %s %s", info.label.lower(), row_id)


# ═════════════════════════════════════════════════════════════════════════════
# Options & history
# ═════════════════════════════════════════════════════════════════════════════


def get_options(option_type: str, pillar_id: str | None = None,
                category_id: str | None = None) -> list[dict]:
    """``{value, label}`` lists for the cascading dropdowns."""
    if option_type not in OPTION_TYPES:
        raise ValidationError(
            f"Invalid option type: {option_type}",
            details={"type": option_type, "allowed": list(OPTION_TYPES)},
        )

    if option_type == "pillars":
        rows = db.session.query(StrategicPillar).order_by(StrategicPillar.name).all()
        return [{"value": r.id, "label": r.name} for r in rows]

    if option_type == "categories":
        q = db.session.query(Category)
        if pillar_id:
            q = q.filter(Category.pillar_id == pillar_id)
        return [{"value": r.id, "label": r.name} for r in q.order_by(Category.name).all()]

    if option_type == "goals":
        q = db.session.query(StrategicGoal)
        if category_id:
            q = q.filter(StrategicGoal.category_id == category_id)
        return [{"value": r.id, "label": r.text} for r in q.order_by(StrategicGoal.text).all()]

    # status-options
    return [{"value": s, "label": STATUS_LABELS[s]} for s in STATUSES]


def get_progress_history(program_id: str | None = None, limit: int = 50, page: int = 1) -> list[dict]:
    """Newest-first progress changes, each with the program's current text."""
    limit = max(1, min(int(limit), 500))
    q = (
        db.session.query(ProgressUpdateHistory, StrategicProgram.text)
        .outerjoin(StrategicProgram, StrategicProgram.id == ProgressUpdateHistory.program_id)
    )
    if program_id:
        q = q.filter(ProgressUpdateHistory.program_id == program_id)
    rows = (
        q.order_by(ProgressUpdateHistory.changed_at.desc(), ProgressUpdateHistory.id.desc())
        .limit(limit)
        .offset((max(int(page), 1) - 1) * limit)
        .all()
    )
    result = []
    for history, program_text in rows:
        d = history.to_dict()
        d["program_text"] = program_text
        result.append(d)
    return result
