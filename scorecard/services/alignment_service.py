"""Alignment service: links between the functional and ORD hierarchies.

Node addressing:
    ORD         pillar / category / goal / program → table primary keys
    functional  program                           → functional_programs.id
                pillar / category / goal          → composite name keys
                                                    ("P", "P|C", "P|C|G")

Read helpers enrich every edge with a display name and an ``A > B > C``
path for both ends.  Bulk operations run each item in its own transaction
and report per-index outcomes; one bad item never aborts the batch.
"""
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from scorecard.core.enums import (
    ALIGNMENT_STRENGTHS,
    BULK_CREATED_BY,
    DEFAULT_CREATED_BY,
    NODE_TYPES,
    SOURCE_FUNCTIONAL,
    SOURCE_ORD,
    SOURCES,
)
from scorecard.core.exceptions import ConflictError, NotFoundError, ValidationError
from scorecard.models import db
from scorecard.models.alignment import Alignment
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicPillar, StrategicProgram,
)
from scorecard.services.hierarchy_service import (
    UNSPECIFIED_CATEGORY,
    UNSPECIFIED_GOAL,
    UNSPECIFIED_PILLAR,
    functional_keys,
)
from scorecard.utils.helpers import transaction

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20
UNALIGNED_LIMIT = 50
PATH_SEPARATOR = " > "
UNKNOWN = "Unknown"


# ═════════════════════════════════════════════════════════════════════════════
# Validation
# ═════════════════════════════════════════════════════════════════════════════


def _validate_type(value, field: str) -> str:
    if value not in NODE_TYPES:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={field: value, "allowed": list(NODE_TYPES)},
        )
    return value


def _validate_strength(value) -> str:
    if value not in ALIGNMENT_STRENGTHS:
        raise ValidationError(
            f"Invalid strength: {value!r}",
            details={"strength": value, "allowed": list(ALIGNMENT_STRENGTHS)},
        )
    return value


def _validate_source(value) -> str | None:
    if value in (None, ""):
        return None
    if value not in SOURCES:
        raise ValidationError(
            f"Invalid source: {value!r}", details={"source": value, "allowed": list(SOURCES)},
        )
    return value


def _validate_rationale(value) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ValidationError("rationale must be a string", details={"rationale": repr(value)})
    return value


def _require_str(data: dict, field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: "required"})
    return value.strip()


# ═════════════════════════════════════════════════════════════════════════════
# Node description (name + path)
# ═════════════════════════════════════════════════════════════════════════════


FUNCTIONAL_DEPTH = {"pillar": 1, "category": 2, "goal": 3}


def _functional_group_names(node_type: str, node_id: str) -> list[str] | None:
    """Names along the path to a functional pillar/category/goal, or None.

    Composite ids are matched against the keys the tree builds from the
    stored rows, so names that themselves contain the separator resolve.
    """
    depth = FUNCTIONAL_DEPTH[node_type]
    groups = db.session.query(
        FunctionalProgram.pillar, FunctionalProgram.category, FunctionalProgram.strategic_goal,
    ).distinct()
    for pillar, category, goal in groups:
        if functional_keys(pillar, category, goal)[depth - 1] == node_id:
            names = (
                pillar or UNSPECIFIED_PILLAR,
                category or UNSPECIFIED_CATEGORY,
                goal or UNSPECIFIED_GOAL,
            )
            return list(names[:depth])
    return None


def describe_node(source: str, node_type: str, node_id: str) -> dict | None:
    """Return ``{"name", "path"}`` for a node, or None if it does not exist."""
    if source == SOURCE_ORD:
        return _describe_ord(node_type, node_id)
    return _describe_functional(node_type, node_id)


def _name_of(model, row_id, attr):
    if not row_id:
        return UNKNOWN
    row = db.session.get(model, row_id)
    return getattr(row, attr) if row is not None else UNKNOWN


def _describe_ord(node_type, node_id):
    if node_type == "pillar":
        row = db.session.get(StrategicPillar, node_id)
        return {"name": row.name, "path": row.name} if row else None
    if node_type == "category":
        row = db.session.get(Category, node_id)
        if row is None:
            return None
        pillar = _name_of(StrategicPillar, row.pillar_id, "name")
        return {"name": row.name, "path": PATH_SEPARATOR.join((pillar, row.name))}
    if node_type == "goal":
        row = db.session.get(StrategicGoal, node_id)
        if row is None:
            return None
        parts = (
            _name_of(StrategicPillar, row.pillar_id, "name"),
            _name_of(Category, row.category_id, "name"),
            row.text,
        )
        return {"name": row.text, "path": PATH_SEPARATOR.join(parts)}
    row = db.session.get(StrategicProgram, node_id)
    if row is None:
        return None
    parts = (
        _name_of(StrategicPillar, row.pillar_id, "name"),
        _name_of(Category, row.category_id, "name"),
        _name_of(StrategicGoal, row.goal_id, "text"),
        row.text,
    )
    return {"name": row.text, "path": PATH_SEPARATOR.join(parts)}


def _functional_program_path(row: FunctionalProgram) -> str:
    return PATH_SEPARATOR.join((
        row.pillar or UNKNOWN, row.category or UNKNOWN, row.strategic_goal or UNKNOWN, row.text,
    ))


def _describe_functional(node_type, node_id):
    if node_type == "program":
        row = db.session.get(FunctionalProgram, node_id)
        return {"name": row.text, "path": _functional_program_path(row)} if row else None

    pieces = _functional_group_names(node_type, node_id)
    if pieces is None:
        return None
    return {"name": pieces[-1], "path": PATH_SEPARATOR.join(pieces)}


def _enrich(alignment: Alignment) -> dict:
    d = alignment.to_dict()
    functional = _describe_functional(alignment.functional_type, alignment.functional_id) or {}
    ord_node = _describe_ord(alignment.ord_type, alignment.ord_id) or {}
    d["functional_name"] = functional.get("name")
    d["functional_path"] = functional.get("path")
    d["ord_name"] = ord_node.get("name")
    d["ord_path"] = ord_node.get("path")
    return d


# ═════════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════════


def _touching(item_type: str, item_id: str, source: str | None):
    functional_side = (Alignment.functional_type == item_type) & (Alignment.functional_id == item_id)
    ord_side = (Alignment.ord_type == item_type) & (Alignment.ord_id == item_id)
    if source == SOURCE_FUNCTIONAL:
        return functional_side
    if source == SOURCE_ORD:
        return ord_side
    return or_(functional_side, ord_side)


def get_alignments(item_type: str, item_id: str, source: str | None = None) -> list[dict]:
    """Edges touching one node (either side unless ``source`` narrows it), newest first."""
    _validate_type(item_type, "type")
    source = _validate_source(source)
    rows = (
        db.session.query(Alignment)
        .filter(_touching(item_type, item_id, source))
        .order_by(Alignment.created_at.desc(), Alignment.id.desc())
        .all()
    )
    return [_enrich(a) for a in rows]


def get_alignment_count(item_type: str, item_id: str, source: str | None = None) -> int:
    _validate_type(item_type, "type")
    source = _validate_source(source)
    return db.session.query(Alignment).filter(_touching(item_type, item_id, source)).count()


def list_alignments(limit: int = 100) -> list[dict]:
    rows = (
        db.session.query(Alignment)
        .order_by(Alignment.created_at.desc(), Alignment.id.desc())
        .limit(max(1, min(int(limit), 1000)))
        .all()
    )
    return [_enrich(a) for a in rows]


def search_alignment_targets(term: str, exclude_type: str | None = None,
                             exclude_id: str | None = None) -> list[dict]:
    """Case-insensitive substring search over both hierarchies.

    Returns at most 20 ``{type, source, id, title, path}`` results ordered by title.
    """
    term = (term or "").strip()
    if len(term) < SEARCH_MIN_LENGTH:
        raise ValidationError(
            f"Search term must be at least {SEARCH_MIN_LENGTH} characters",
            details={"q": term},
        )
    pattern = f"%{term}%"
    results = []

    for node_type, model, attr in (
        ("pillar", StrategicPillar, "name"),
        ("category", Category, "name"),
        ("goal", StrategicGoal, "text"),
        ("program", StrategicProgram, "text"),
    ):
        column = getattr(model, attr)
        q = db.session.query(model).filter(column.ilike(pattern))
        if exclude_type == node_type and exclude_id:
            q = q.filter(model.id != exclude_id)
        for row in q.order_by(column).limit(SEARCH_LIMIT):
            described = _describe_ord(node_type, row.id)
            results.append({
                "type": node_type,
                "source": SOURCE_ORD,
                "id": row.id,
                "title": described["name"],
                "path": described["path"],
            })

    q = db.session.query(FunctionalProgram).filter(FunctionalProgram.text.ilike(pattern))
    if exclude_type == "program" and exclude_id:
        q = q.filter(FunctionalProgram.id != exclude_id)
    for row in q.order_by(FunctionalProgram.text).limit(SEARCH_LIMIT):
        results.append({
            "type": "program",
            "source": SOURCE_FUNCTIONAL,
            "id": row.id,
            "title": row.text,
            "path": _functional_program_path(row),
        })

    results.sort(key=lambda r: ((r["title"] or "").casefold(), r["source"], r["id"]))
    return results[:SEARCH_LIMIT]


def get_unaligned_items() -> dict:
    """Programs and goals (with programs) that have no alignment, per side, capped at 50."""
    ord_items = []
    aligned_ord = {
        (t, i) for t, i in db.session.query(Alignment.ord_type, Alignment.ord_id)
    }
    for row in db.session.query(StrategicProgram):
        if ("program", row.id) not in aligned_ord:
            described = _describe_ord("program", row.id)
            ord_items.append({"id": row.id, "type": "program", "source": SOURCE_ORD, **described})
    goal_ids_with_programs = {g for (g,) in db.session.query(StrategicProgram.goal_id).distinct()}
    for row in db.session.query(StrategicGoal).filter(StrategicGoal.id.in_(goal_ids_with_programs)):
        if ("goal", row.id) not in aligned_ord:
            described = _describe_ord("goal", row.id)
            ord_items.append({"id": row.id, "type": "goal", "source": SOURCE_ORD, **described})

    functional_items = []
    aligned_functional = {
        (t, i) for t, i in db.session.query(Alignment.functional_type, Alignment.functional_id)
    }
    seen_goals = set()
    for row in db.session.query(FunctionalProgram):
        if ("program", row.id) not in aligned_functional:
            functional_items.append({
                "id": row.id, "type": "program", "source": SOURCE_FUNCTIONAL,
                "name": row.text, "path": _functional_program_path(row),
            })
        _, _, goal_id = functional_keys(row.pillar, row.category, row.strategic_goal)
        if goal_id not in seen_goals and ("goal", goal_id) not in aligned_functional:
            seen_goals.add(goal_id)
            names = (
                row.pillar or UNSPECIFIED_PILLAR,
                row.category or UNSPECIFIED_CATEGORY,
                row.strategic_goal or UNSPECIFIED_GOAL,
            )
            functional_items.append({
                "id": goal_id, "type": "goal", "source": SOURCE_FUNCTIONAL,
                "name": names[-1],
                "path": PATH_SEPARATOR.join(names),
            })

    ord_items.sort(key=lambda r: r["path"])
    functional_items.sort(key=lambda r: r["path"])
    return {
        "functional": functional_items[:UNALIGNED_LIMIT],
        "ord": ord_items[:UNALIGNED_LIMIT],
    }


# ═════════════════════════════════════════════════════════════════════════════
# Writes
# ═════════════════════════════════════════════════════════════════════════════


def create_alignment(data: dict, default_created_by: str = DEFAULT_CREATED_BY) -> dict:
    """Create one edge after validating enums and that both ends exist."""
    if not isinstance(data, dict):
        raise ValidationError("Alignment must be a JSON object")
    functional_type = _validate_type(data.get("functional_type"), "functional_type")
    ord_type = _validate_type(data.get("ord_type"), "ord_type")
    functional_id = _require_str(data, "functional_id")
    ord_id = _require_str(data, "ord_id")
    strength = _validate_strength(data.get("strength"))
    rationale = _validate_rationale(data.get("rationale"))
    created_by = data.get("created_by") or default_created_by

    if _describe_functional(functional_type, functional_id) is None:
        raise NotFoundError(f"Functional {functional_type}", functional_id)
    if _describe_ord(ord_type, ord_id) is None:
        raise NotFoundError(f"ORD {ord_type}", ord_id)

    endpoints = f"{functional_type}:{functional_id} → {ord_type}:{ord_id}"
    duplicate = db.session.query(Alignment.id).filter_by(
        functional_type=functional_type, functional_id=functional_id,
        ord_type=ord_type, ord_id=ord_id,
    ).first()
    if duplicate is not None:
        raise ConflictError("Alignment", "endpoints", endpoints)

    try:
        with transaction():
            alignment = Alignment(
                functional_type=functional_type,
                functional_id=functional_id,
                ord_type=ord_type,
                ord_id=ord_id,
                strength=strength,
                rationale=rationale,
                created_by=created_by,
            )
            db.session.add(alignment)
            db.session.flush()
    except IntegrityError as exc:
        logger.warning("Alignment insert conflict %s: %s", endpoints, exc.orig)
        raise ConflictError("Alignment", "endpoints", endpoints) from exc

    logger.info("Created alignment %s (%s) %s", alignment.id, strength, endpoints)
    return _enrich(alignment)


def update_alignment(alignment_id, data: dict) -> dict:
    """Change ``strength`` and/or ``rationale``; other keys are rejected."""
    if not isinstance(data, dict):
        raise ValidationError("Update must be a JSON object")
    unknown = sorted(set(data) - {"id", "strength", "rationale"})
    if unknown:
        raise ValidationError(
            f"Unknown field(s): {', '.join(unknown)}", details={"unknown": unknown},
        )
    if "strength" not in data and "rationale" not in data:
        raise ValidationError("Nothing to update: provide strength and/or rationale")
    if "strength" in data:
        _validate_strength(data["strength"])
    if "rationale" in data:
        _validate_rationale(data["rationale"])

    with transaction():
        alignment = db.session.get(Alignment, _coerce_id(alignment_id))
        if alignment is None:
            raise NotFoundError("Alignment", alignment_id)
        if "strength" in data:
            alignment.strength = data["strength"]
        if "rationale" in data:
            alignment.rationale = data["rationale"]
        db.session.flush()

    return _enrich(alignment)


def delete_alignment(alignment_id) -> None:
    with transaction():
        alignment = db.session.get(Alignment, _coerce_id(alignment_id))
        if alignment is None:
            raise NotFoundError("Alignment", alignment_id)
        db.session.delete(alignment)
    logger.info("Deleted alignment %s", alignment_id)


def _coerce_id(alignment_id) -> int:
    try:
        return int(alignment_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Alignment id must be an integer", details={"id": alignment_id}) from exc


# ── Bulk ─────────────────────────────────────────────────────────────────────


def _bulk(items, handler) -> dict:
    if not isinstance(items, list) or not items:
        raise ValidationError("Request must contain a non-empty list of items")

    results, errors = [], []
    for index, item in enumerate(items):
        try:
            outcome = handler(item)
        except (ValidationError, NotFoundError, ConflictError) as exc:
            errors.append({"index": index, "error": str(exc), "data": item})
            continue
        results.append({"index": index, "success": True, **outcome})

    logger.info("Bulk alignment op: %d ok, %d failed", len(results), len(errors))
    return {
        "success": not errors,
        "processed": len(items),
        "successful": len(results),
        "failed": len(errors),
        "results": results,
        "errors": errors,
    }


def bulk_create_alignments(items: list) -> dict:
    return _bulk(
        items,
        lambda item: {"alignment": create_alignment(item, default_created_by=BULK_CREATED_BY)},
    )


def bulk_update_alignments(items: list) -> dict:
    def _one(item):
        if not isinstance(item, dict) or "id" not in item:
            raise ValidationError("Each update needs an id")
        return {"alignment": update_alignment(item["id"], item)}

    return _bulk(items, _one)


def bulk_delete_alignments(ids: list) -> dict:
    def _one(alignment_id):
        delete_alignment(alignment_id)
        return {"id": alignment_id}

    return _bulk(ids, _one)
