"""Field-path updates: scorecard inline edits.

A client addresses a cell with ``(update_type, field_path, quarter)``:

    field_path = [pillar_id, category_id]                        category level
    field_path = [pillar_id, category_id, goal_id]               goal level
    field_path = [pillar_id, category_id, goal_id, program_id]   program level

Resolution turns that into a typed ``FieldUpdate`` before anything touches
the database:

    1. ``update_type`` picks an ``UpdateSpec`` (target model, level, column
       or quarterly field kind).  Unknown types are rejected.
    2. The path must have exactly the level's length; the last element is
       the row id.
    3. A quarter, when required, is normalised and mapped to a column
       through the closed ``QUARTER_COLUMNS`` table.
    4. Status values are checked against the status vocabulary.
    5. The target row is loaded and every earlier path element is compared
       with the row's stored parent chain.

The write, its progress-history row and the ancestry check share one
transaction; the fresh tree is read after commit.
"""
import logging
from dataclasses import dataclass, field

from flask import current_app

from scorecard.core.enums import (
    FUNCTIONAL_UPDATE_TYPES,
    KIND_OBJECTIVE,
    KIND_PROGRESS,
    KIND_STATUS,
    ORD_UPDATE_TYPES,
    STATUSES,
)
from scorecard.core.exceptions import NotFoundError, ValidationError
from scorecard.core.quarters import normalize_quarter, quarter_column
from scorecard.models import db
from scorecard.models.audit import record_progress_change
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicProgram,
)
from scorecard.services import hierarchy_service
from scorecard.utils.helpers import transaction

logger = logging.getLogger(__name__)

LEVEL_CATEGORY = "category"
LEVEL_GOAL = "goal"
LEVEL_PROGRAM = "program"

PATH_LENGTHS = {LEVEL_CATEGORY: 2, LEVEL_GOAL: 3, LEVEL_PROGRAM: 4}


@dataclass(frozen=True)
class UpdateSpec:
    """Static description of one update type."""

    model: type
    level: str
    column: str | None = None       # fixed column, or ...
    kind: str | None = None         # ... quarterly field kind resolved per request
    functional: bool = False

    @property
    def quarter_scoped(self) -> bool:
        return self.kind is not None


@dataclass
class FieldUpdate:
    """A resolved, validated single-cell update."""

    update_type: str
    model: type
    target_id: str
    column: str
    value: str | None
    expected_parents: dict = field(default_factory=dict)
    functional: bool = False

    @property
    def is_status(self) -> bool:
        return self.column == "status" or self.column.endswith("_status")

    @property
    def is_progress(self) -> bool:
        return self.column == "progress_updates" or self.column.endswith("_progress")


_UPDATE_SPECS: dict[str, UpdateSpec] = {
    # ORD
    "program": UpdateSpec(StrategicProgram, LEVEL_PROGRAM, kind=KIND_STATUS),
    "program-text": UpdateSpec(StrategicProgram, LEVEL_PROGRAM, column="text"),
    "program-objective": UpdateSpec(StrategicProgram, LEVEL_PROGRAM, kind=KIND_OBJECTIVE),
    "program-progress": UpdateSpec(StrategicProgram, LEVEL_PROGRAM, column="progress_updates"),
    "program-quarter-progress": UpdateSpec(StrategicProgram, LEVEL_PROGRAM, kind=KIND_PROGRESS),
    "category": UpdateSpec(Category, LEVEL_CATEGORY, column="status"),
    "category-name": UpdateSpec(Category, LEVEL_CATEGORY, column="name"),
    "goal": UpdateSpec(StrategicGoal, LEVEL_GOAL, column="status"),
    "goal-quarter": UpdateSpec(StrategicGoal, LEVEL_GOAL, kind=KIND_STATUS),
    "goal-text": UpdateSpec(StrategicGoal, LEVEL_GOAL, column="text"),
    # Functional
    "functional-program": UpdateSpec(FunctionalProgram, LEVEL_PROGRAM, kind=KIND_STATUS, functional=True),
    "functional-program-text": UpdateSpec(FunctionalProgram, LEVEL_PROGRAM, column="text", functional=True),
    "functional-program-objective": UpdateSpec(
        FunctionalProgram, LEVEL_PROGRAM, kind=KIND_OBJECTIVE, functional=True,
    ),
    "functional-program-progress": UpdateSpec(
        FunctionalProgram, LEVEL_PROGRAM, column="progress_updates", functional=True,
    ),
    "functional-program-quarter-progress": UpdateSpec(
        FunctionalProgram, LEVEL_PROGRAM, kind=KIND_PROGRESS, functional=True,
    ),
}

if set(_UPDATE_SPECS) != set(ORD_UPDATE_TYPES) | set(FUNCTIONAL_UPDATE_TYPES):
    raise RuntimeError("Update type table does not match the update type vocabulary")

# Columns that must never be written empty
_REQUIRED_TEXT_COLUMNS = {"text", "name"}


# ── Resolution ───────────────────────────────────────────────────────────────


def _strip_kind_suffix(raw: str, kind: str) -> str:
    # "q1_2025_progress" is accepted as a quarter for progress updates
    suffix = f"_{kind}"
    if isinstance(raw, str) and raw.lower().endswith(suffix):
        return raw[: -len(suffix)]
    return raw


def resolve_field_update(update_type, field_path, new_value, quarter=None,
                         *, functional: bool = False) -> FieldUpdate:
    """Validate the request shape and build a ``FieldUpdate``.

    Does not touch the database; ancestry is checked in ``_apply``.

    Raises:
        ValidationError: unknown type, wrong path shape, bad quarter, bad status.
    """
    spec = _UPDATE_SPECS.get(update_type)
    if spec is None or spec.functional != functional:
        allowed = FUNCTIONAL_UPDATE_TYPES if functional else ORD_UPDATE_TYPES
        raise ValidationError(
            f"Invalid update type: {update_type}",
            details={"type": update_type, "allowed": list(allowed)},
        )

    if not isinstance(field_path, (list, tuple)) or not all(
        isinstance(p, str) and p for p in field_path
    ):
        raise ValidationError("field_path must be a list of non-empty ids",
                              details={"field_path": field_path})
    expected_len = PATH_LENGTHS[spec.level]
    if len(field_path) != expected_len:
        raise ValidationError(
            f"field_path for '{update_type}' must have {expected_len} elements",
            details={"field_path": list(field_path), "expected_length": expected_len},
        )

    if spec.quarter_scoped:
        default_year = current_app.config["SCORECARD_DEFAULT_YEAR"]
        quarter_key = normalize_quarter(_strip_kind_suffix(quarter, spec.kind), default_year)
        column = quarter_column(quarter_key, spec.kind)
    else:
        column = spec.column

    if new_value is not None and not isinstance(new_value, str):
        raise ValidationError("new_value must be a string or null", details={"new_value": repr(new_value)})

    update = FieldUpdate(
        update_type=update_type,
        model=spec.model,
        target_id=field_path[-1],
        column=column,
        value=new_value,
        functional=spec.functional,
    )

    if update.is_status:
        if update.value in (None, ""):
            update.value = None
        elif update.value not in STATUSES:
            raise ValidationError(
                f"Invalid status: {update.value}",
                details={"new_value": update.value, "allowed": list(STATUSES)},
            )
    elif column in _REQUIRED_TEXT_COLUMNS and not (update.value or "").strip():
        raise ValidationError(f"{column} must not be empty", details={column: "empty"})

    ancestors = list(field_path[:-1])
    names = ("pillar_id", "category_id", "goal_id")
    update.expected_parents = dict(zip(names, ancestors))
    return update


def _actual_parents(row, functional: bool) -> dict:
    if functional:
        pillar_id, category_id, goal_id = hierarchy_service.functional_keys(
            row.pillar, row.category, row.strategic_goal,
        )
        return {"pillar_id": pillar_id, "category_id": category_id, "goal_id": goal_id}
    return {
        "pillar_id": row.pillar_id,
        "category_id": getattr(row, "category_id", None),
        "goal_id": getattr(row, "goal_id", None),
    }


def _check_ancestry(update: FieldUpdate, row) -> None:
    actual = _actual_parents(row, update.functional)
    mismatched = {
        key: {"expected": expected, "actual": actual.get(key)}
        for key, expected in update.expected_parents.items()
        if actual.get(key) != expected
    }
    if mismatched:
        raise ValidationError(
            f"field_path does not match the parents of {update.model.__name__} {update.target_id!r}",
            details=mismatched,
        )


# ── Apply ────────────────────────────────────────────────────────────────────


def _apply(update: FieldUpdate, changed_by: str | None) -> None:
    with transaction():
        row = db.session.get(update.model, update.target_id, with_for_update=True)
        if row is None:
            raise NotFoundError(update.model.__name__, update.target_id)
        _check_ancestry(update, row)

        previous = getattr(row, update.column)
        setattr(row, update.column, update.value)

        if update.is_progress and isinstance(row, StrategicProgram):
            record_progress_change(
                program_id=row.id,
                field=update.column,
                previous_value=previous,
                new_value=update.value,
                changed_by=changed_by,
            )

    logger.info(
        "Field update %s: %s %s.%s",
        update.update_type, update.model.__tablename__, update.target_id, update.column,
    )


def perform_update(update_type, field_path, new_value, quarter=None, changed_by=None) -> dict:
    """Apply one ORD field-path update and return the fresh ORD tree."""
    update = resolve_field_update(update_type, field_path, new_value, quarter)
    _apply(update, changed_by)
    return hierarchy_service.get_scorecard_data()


def perform_functional_update(update_type, field_path, new_value, quarter=None, changed_by=None) -> dict:
    """Apply one functional field-path update and return the fresh functional tree."""
    update = resolve_field_update(update_type, field_path, new_value, quarter, functional=True)
    _apply(update, changed_by)
    return hierarchy_service.get_functional_scorecard_data()
