"""
Strategic Scorecard Service
Hierarchy domain models.

Models:
    - StrategicPillar:   top-level grouping
    - Category:          belongs to one pillar
    - StrategicGoal:     belongs to one category (pillar_id cached)
    - StrategicProgram:  belongs to one goal (category_id / pillar_id cached)
    - FunctionalProgram: flat row of the parallel "functional" hierarchy
    - IdSequence:        per-prefix counter behind the "prefix-NNN" ids

Architecture chain: StrategicPillar → Category → StrategicGoal → StrategicProgram

Quarterly columns follow ``<quarter>_<kind>`` (``q2_2025_status``); the
full set is enumerated in ``scorecard.core.enums``.
"""

from datetime import datetime, timezone

from scorecard.core.enums import GOAL_QUARTER_COLUMNS, PROGRAM_QUARTER_COLUMNS
from scorecard.models import db


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ── Column mixins ────────────────────────────────────────────────────────────


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class VisibilityWindowMixin:
    """Optional quarter window ("Q1-2025" … "Q4-2026") controlling visibility."""

    start_quarter = db.Column(db.String(20), nullable=True)
    end_quarter = db.Column(db.String(20), nullable=True)


class SponsorMixin:
    ord_lt_sponsors = db.Column(db.JSON, default=list)
    sponsors_leads = db.Column(db.JSON, default=list)
    reporting_owners = db.Column(db.JSON, default=list)
    progress_updates = db.Column(db.Text, nullable=True)

    def sponsor_dict(self):
        return {
            "ord_lt_sponsors": list(self.ord_lt_sponsors or []),
            "sponsors_leads": list(self.sponsors_leads or []),
            "reporting_owners": list(self.reporting_owners or []),
            "progress_updates": self.progress_updates,
        }


class QuarterlyObjectiveStatusMixin:
    """Per-quarter objective + status for the tracked quarters."""

    q1_2025_objective = db.Column(db.Text, nullable=True)
    q2_2025_objective = db.Column(db.Text, nullable=True)
    q3_2025_objective = db.Column(db.Text, nullable=True)
    q4_2025_objective = db.Column(db.Text, nullable=True)
    q1_2026_objective = db.Column(db.Text, nullable=True)
    q2_2026_objective = db.Column(db.Text, nullable=True)
    q3_2026_objective = db.Column(db.Text, nullable=True)
    q4_2026_objective = db.Column(db.Text, nullable=True)

    q1_2025_status = db.Column(db.String(20), nullable=True)
    q2_2025_status = db.Column(db.String(20), nullable=True)
    q3_2025_status = db.Column(db.String(20), nullable=True)
    q4_2025_status = db.Column(db.String(20), nullable=True)
    q1_2026_status = db.Column(db.String(20), nullable=True)
    q2_2026_status = db.Column(db.String(20), nullable=True)
    q3_2026_status = db.Column(db.String(20), nullable=True)
    q4_2026_status = db.Column(db.String(20), nullable=True)


class QuarterlyProgressMixin:
    q1_2025_progress = db.Column(db.Text, nullable=True)
    q2_2025_progress = db.Column(db.Text, nullable=True)
    q3_2025_progress = db.Column(db.Text, nullable=True)
    q4_2025_progress = db.Column(db.Text, nullable=True)
    q1_2026_progress = db.Column(db.Text, nullable=True)
    q2_2026_progress = db.Column(db.Text, nullable=True)
    q3_2026_progress = db.Column(db.Text, nullable=True)
    q4_2026_progress = db.Column(db.Text, nullable=True)


# ═══════════════════════════════════════════════════════════════════════════
#  ORD HIERARCHY
# ═══════════════════════════════════════════════════════════════════════════


class StrategicPillar(TimestampMixin, VisibilityWindowMixin, db.Model):
    __tablename__ = "strategic_pillars"

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "start_quarter": self.start_quarter,
            "end_quarter": self.end_quarter,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<StrategicPillar {self.id}: {self.name}>"


class Category(TimestampMixin, VisibilityWindowMixin, db.Model):
    __tablename__ = "categories"

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=True)
    comments = db.Column(db.Text, nullable=True)
    pillar_id = db.Column(
        db.String(50), db.ForeignKey("strategic_pillars.id"), nullable=False, index=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "comments": self.comments,
            "pillar_id": self.pillar_id,
            "start_quarter": self.start_quarter,
            "end_quarter": self.end_quarter,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Category {self.id}: {self.name}>"


class StrategicGoal(TimestampMixin, VisibilityWindowMixin, SponsorMixin,
                    QuarterlyObjectiveStatusMixin, db.Model):
    """A goal within a category.  ``pillar_id`` is a cache of category.pillar_id."""

    __tablename__ = "strategic_goals"

    id = db.Column(db.String(50), primary_key=True)
    text = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=True)
    comments = db.Column(db.Text, nullable=True)
    category_id = db.Column(
        db.String(50), db.ForeignKey("categories.id"), nullable=False, index=True,
    )
    pillar_id = db.Column(
        db.String(50), db.ForeignKey("strategic_pillars.id"), nullable=False, index=True,
    )

    def to_dict(self):
        d = {
            "id": self.id,
            "text": self.text,
            "status": self.status,
            "comments": self.comments,
            "category_id": self.category_id,
            "pillar_id": self.pillar_id,
            "start_quarter": self.start_quarter,
            "end_quarter": self.end_quarter,
        }
        d.update(self.sponsor_dict())
        for column in GOAL_QUARTER_COLUMNS:
            d[column] = getattr(self, column)
        d["created_at"] = _iso(self.created_at)
        d["updated_at"] = _iso(self.updated_at)
        return d

    def __repr__(self):
        return f"<StrategicGoal {self.id}: {self.text[:40]}>"


class StrategicProgram(TimestampMixin, VisibilityWindowMixin, SponsorMixin,
                       QuarterlyObjectiveStatusMixin, QuarterlyProgressMixin, db.Model):
    """A program under a goal.  ``category_id`` / ``pillar_id`` cache the goal's chain."""

    __tablename__ = "strategic_programs"

    id = db.Column(db.String(50), primary_key=True)
    text = db.Column(db.Text, nullable=False)
    goal_id = db.Column(
        db.String(50), db.ForeignKey("strategic_goals.id"), nullable=False, index=True,
    )
    category_id = db.Column(
        db.String(50), db.ForeignKey("categories.id"), nullable=False, index=True,
    )
    pillar_id = db.Column(
        db.String(50), db.ForeignKey("strategic_pillars.id"), nullable=False, index=True,
    )

    def to_dict(self):
        d = {
            "id": self.id,
            "text": self.text,
            "goal_id": self.goal_id,
            "category_id": self.category_id,
            "pillar_id": self.pillar_id,
            "start_quarter": self.start_quarter,
            "end_quarter": self.end_quarter,
        }
        d.update(self.sponsor_dict())
        for column in PROGRAM_QUARTER_COLUMNS:
            d[column] = getattr(self, column)
        d["created_at"] = _iso(self.created_at)
        d["updated_at"] = _iso(self.updated_at)
        return d

    def __repr__(self):
        return f"<StrategicProgram {self.id}: {self.text[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  FUNCTIONAL HIERARCHY
# ═══════════════════════════════════════════════════════════════════════════


class FunctionalProgram(TimestampMixin, VisibilityWindowMixin, SponsorMixin,
                        QuarterlyObjectiveStatusMixin, QuarterlyProgressMixin, db.Model):
    """
    One program of the functional hierarchy.

    The functional tree has no tables of its own above programs: pillar,
    category and goal are free-text names on each row and the tree is
    grouped from them at read time.
    """

    __tablename__ = "functional_programs"

    id = db.Column(db.String(50), primary_key=True)
    text = db.Column(db.Text, nullable=False)
    pillar = db.Column(db.String(255), nullable=True, index=True)
    category = db.Column(db.String(255), nullable=True)
    strategic_goal = db.Column(db.Text, nullable=True)
    function = db.Column(db.String(255), nullable=True, index=True)
    linked_ord_program_id = db.Column(
        db.String(50), db.ForeignKey("strategic_programs.id", ondelete="SET NULL"), nullable=True,
    )

    def to_dict(self):
        d = {
            "id": self.id,
            "text": self.text,
            "pillar": self.pillar,
            "category": self.category,
            "strategic_goal": self.strategic_goal,
            "function": self.function,
            "linked_ord_program_id": self.linked_ord_program_id,
            "start_quarter": self.start_quarter,
            "end_quarter": self.end_quarter,
        }
        d.update(self.sponsor_dict())
        for column in PROGRAM_QUARTER_COLUMNS:
            d[column] = getattr(self, column)
        d["created_at"] = _iso(self.created_at)
        d["updated_at"] = _iso(self.updated_at)
        return d

    def __repr__(self):
        return f"<FunctionalProgram {self.id}: {self.text[:40]}>"


# ═══════════════════════════════════════════════════════════════════════════
#  ID SEQUENCE
# ═══════════════════════════════════════════════════════════════════════════


class IdSequence(db.Model):
    """Monotonic counter per id prefix; row-locked while a new id is issued."""

    __tablename__ = "id_sequences"

    prefix = db.Column(db.String(30), primary_key=True)
    last_value = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<IdSequence {self.prefix}={self.last_value}>"
