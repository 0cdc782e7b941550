"""Paginated table service: generic list/search/sort for the admin console.

Tables are addressed by their admin name ("pillars", "goals", ...) and
resolved through ``TABLES``.  Sort and search columns are looked up on the
mapped table's column collection, so identifiers in the generated SQL
always come from the model, never from the request.
"""
import logging
import math
from dataclasses import dataclass

from sqlalchemy import String, cast, or_

from scorecard.core.enums import ADMIN_TABLES, NODE_TYPE_BY_TABLE
from scorecard.core.exceptions import ConflictError, NotFoundError, ValidationError
from scorecard.models import db
from scorecard.models.alignment import Alignment
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicPillar, StrategicProgram,
)
from scorecard.utils.helpers import transaction

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50


@dataclass(frozen=True)
class TableInfo:
    name: str
    model: type
    label: str
    search_columns: tuple[str, ...]
    default_sort: str = "id"
    # (child model, foreign-key attribute, plural label) blocking deletion
    dependents: tuple | None = None


TABLES: dict[str, TableInfo] = {
    "pillars": TableInfo(
        "pillars", StrategicPillar, "Pillar", ("name",),
        dependents=(Category, "pillar_id", "categories"),
    ),
    "categories": TableInfo(
        "categories", Category, "Category", ("name", "comments"),
        dependents=(StrategicGoal, "category_id", "goals"),
    ),
    "goals": TableInfo(
        "goals", StrategicGoal, "Goal", ("text", "comments", "progress_updates"),
        dependents=(StrategicProgram, "goal_id", "programs"),
    ),
    "programs": TableInfo("programs", StrategicProgram, "Program", ("text", "progress_updates")),
    "functional-programs": TableInfo(
        "functional-programs", FunctionalProgram, "Functional program",
        ("text", "progress_updates", "function"),
    ),
}

if set(TABLES) != set(ADMIN_TABLES):
    raise RuntimeError(f"Admin table registry out of sync: {sorted(set(TABLES) ^ set(ADMIN_TABLES))}")


def get_table(name: str) -> TableInfo:
    info = TABLES.get(name)
    if info is None:
        raise ValidationError(f"Unknown table: {name}", details={"table": name, "allowed": list(ADMIN_TABLES)})
    return info


def _column(info: TableInfo, name: str):
    columns = info.model.__table__.columns
    if name not in columns:
        raise ValidationError(
            f"Unknown column '{name}' for {info.name}",
            details={"column": name, "allowed": sorted(columns.keys())},
        )
    return columns[name]


def get_paginated_data(
    table: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    sort_column: str | None = None,
    sort_direction: str = "ASC",
    search: str | None = None,
    search_columns: list[str] | None = None,
    max_limit: int = 500,
) -> dict:
    """Return one page of rows.

    Returns:
        {"data": [row dicts], "total": int, "page": int, "limit": int, "total_pages": int}

    Raises:
        ValidationError: unknown table / column or bad sort direction.
    """
    info = get_table(table)

    page = max(int(page or 1), 1)
    limit = min(max(int(limit or DEFAULT_PAGE_LIMIT), 1), max_limit)

    direction = (sort_direction or "ASC").upper()
    if direction not in ("ASC", "DESC"):
        raise ValidationError(f"Invalid sort direction: {sort_direction}",
                              details={"sort_direction": sort_direction})
    sort_col = _column(info, sort_column or info.default_sort)

    query = db.session.query(info.model)
    term = (search or "").strip()
    if term:
        names = search_columns or list(info.search_columns)
        pattern = f"%{term}%"
        query = query.filter(or_(*[
            cast(_column(info, name), String).ilike(pattern) for name in names
        ]))

    total = query.count()

    order = sort_col.desc() if direction == "DESC" else sort_col.asc()
    rows = (
        query.order_by(order, info.model.__table__.columns["id"].asc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    return {
        "data": [r.to_dict() for r in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


# ── Deletion ─────────────────────────────────────────────────────────────────


def assert_deletable(info: TableInfo, row_id: str) -> None:
    """Raise ConflictError when child rows still reference ``row_id``."""
    if not info.dependents:
        return
    child_model, fk_attr, plural = info.dependents
    count = (
        db.session.query(child_model)
        .filter(getattr(child_model, fk_attr) == row_id)
        .count()
    )
    if count:
        raise ConflictError(
            info.label, plural, row_id,
            count=count,
            message=f"Cannot delete {info.label.lower()}: {count} {plural} depend on it",
        )


def delete_rows(info: TableInfo, ids: list[str]) -> int:
    """Delete rows by id inside the caller's transaction.

    Every id must exist and pass the dependency check.  Alignment edges
    pointing at a deleted ORD node are removed with it.
    """
    deleted = 0
    for row_id in ids:
        row = db.session.get(info.model, row_id)
        if row is None:
            raise NotFoundError(info.label, row_id)
        assert_deletable(info, row_id)
        if info.model is FunctionalProgram:
            db.session.query(Alignment).filter(
                Alignment.functional_type == "program", Alignment.functional_id == row_id,
            ).delete(synchronize_session=False)
        else:
            db.session.query(Alignment).filter(
                Alignment.ord_type == NODE_TYPE_BY_TABLE[info.name], Alignment.ord_id == row_id,
            ).delete(synchronize_session=False)
        db.session.delete(row)
        db.session.flush()
        deleted += 1
    return deleted


def bulk_delete(table: str, ids: list[str]) -> int:
    """All-or-nothing delete of several rows; returns the deleted count."""
    info = get_table(table)
    if not isinstance(ids, list) or not ids or not all(isinstance(i, str) and i for i in ids):
        raise ValidationError("ids must be a non-empty list of ids", details={"ids": ids})
    with transaction():
        deleted = delete_rows(info, list(dict.fromkeys(ids)))
    logger.info("Bulk deleted %d %s", deleted, info.name)
    return deleted
