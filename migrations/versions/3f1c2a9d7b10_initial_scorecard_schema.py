"""initial_scorecard_schema

Creates the scorecard schema:
  - strategic_pillars / categories / strategic_goals / strategic_programs
                               ORD hierarchy (goal / program cache parent ids)
  - functional_programs        flat functional hierarchy
  - scorecard_alignments       functional → ORD edges, unique per endpoint pair
  - progress_updates_history   append-only progress audit
  - id_sequences               per-prefix id counters

Tables are created conditionally so the revision can be stamped onto
databases that already received them via ``flask init-db``.

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2025-07-01 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


QUARTERS = [f"q{q}_{year}" for year in (2025, 2026) for q in (1, 2, 3, 4)]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _window():
    return [
        sa.Column("start_quarter", sa.String(length=20), nullable=True),
        sa.Column("end_quarter", sa.String(length=20), nullable=True),
    ]


def _people():
    return [
        sa.Column("ord_lt_sponsors", sa.JSON(), nullable=True),
        sa.Column("sponsors_leads", sa.JSON(), nullable=True),
        sa.Column("reporting_owners", sa.JSON(), nullable=True),
        sa.Column("progress_updates", sa.Text(), nullable=True),
    ]


def _quarterly(progress=False):
    cols = [sa.Column(f"{q}_objective", sa.Text(), nullable=True) for q in QUARTERS]
    cols += [sa.Column(f"{q}_status", sa.String(length=20), nullable=True) for q in QUARTERS]
    if progress:
        cols += [sa.Column(f"{q}_progress", sa.Text(), nullable=True) for q in QUARTERS]
    return cols


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── ORD hierarchy ─────────────────────────────────────────────────────
    if "strategic_pillars" not in existing:
        op.create_table(
            "strategic_pillars",
            sa.Column("id", sa.String(length=50), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            *_window(),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )

    if "categories" not in existing:
        op.create_table(
            "categories",
            sa.Column("id", sa.String(length=50), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("comments", sa.Text(), nullable=True),
            sa.Column("pillar_id", sa.String(length=50), nullable=False),
            *_window(),
            *_timestamps(),
            sa.ForeignKeyConstraint(["pillar_id"], ["strategic_pillars.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_categories_pillar_id", "categories", ["pillar_id"])

    if "strategic_goals" not in existing:
        op.create_table(
            "strategic_goals",
            sa.Column("id", sa.String(length=50), nullable=False),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("comments", sa.Text(), nullable=True),
            sa.Column("category_id", sa.String(length=50), nullable=False),
            sa.Column("pillar_id", sa.String(length=50), nullable=False),
            *_window(),
            *_people(),
            *_quarterly(),
            *_timestamps(),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.ForeignKeyConstraint(["pillar_id"], ["strategic_pillars.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_strategic_goals_category_id", "strategic_goals", ["category_id"])
        op.create_index("ix_strategic_goals_pillar_id", "strategic_goals", ["pillar_id"])

    if "strategic_programs" not in existing:
        op.create_table(
            "strategic_programs",
            sa.Column("id", sa.String(length=50), nullable=False),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("goal_id", sa.String(length=50), nullable=False),
            sa.Column("category_id", sa.String(length=50), nullable=False),
            sa.Column("pillar_id", sa.String(length=50), nullable=False),
            *_window(),
            *_people(),
            *_quarterly(progress=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["goal_id"], ["strategic_goals.id"]),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.ForeignKeyConstraint(["pillar_id"], ["strategic_pillars.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_strategic_programs_goal_id", "strategic_programs", ["goal_id"])
        op.create_index("ix_strategic_programs_category_id", "strategic_programs", ["category_id"])
        op.create_index("ix_strategic_programs_pillar_id", "strategic_programs", ["pillar_id"])

    # ── Functional hierarchy ──────────────────────────────────────────────
    if "functional_programs" not in existing:
        op.create_table(
            "functional_programs",
            sa.Column("id", sa.String(length=50), nullable=False),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("pillar", sa.String(length=255), nullable=True),
            sa.Column("category", sa.String(length=255), nullable=True),
            sa.Column("strategic_goal", sa.Text(), nullable=True),
            sa.Column("function", sa.String(length=255), nullable=True),
            sa.Column("linked_ord_program_id", sa.String(length=50), nullable=True),
            *_window(),
            *_people(),
            *_quarterly(progress=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(
                ["linked_ord_program_id"], ["strategic_programs.id"], ondelete="SET NULL",
            ),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_functional_programs_pillar", "functional_programs", ["pillar"])
        op.create_index("ix_functional_programs_function", "functional_programs", ["function"])

    # ── Alignments ────────────────────────────────────────────────────────
    if "scorecard_alignments" not in existing:
        op.create_table(
            "scorecard_alignments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("functional_type", sa.String(length=20), nullable=False,
                      comment="pillar | category | goal | program"),
            sa.Column("functional_id", sa.String(length=600), nullable=False),
            sa.Column("ord_type", sa.String(length=20), nullable=False,
                      comment="pillar | category | goal | program"),
            sa.Column("ord_id", sa.String(length=50), nullable=False),
            sa.Column("strength", sa.String(length=20), nullable=False,
                      comment="strong | moderate | weak | informational"),
            sa.Column("rationale", sa.Text(), nullable=True),
            sa.Column("created_by", sa.String(length=150), nullable=False),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "functional_type", "functional_id", "ord_type", "ord_id",
                name="uq_alignment_endpoints",
            ),
        )
        op.create_index("idx_alignment_functional", "scorecard_alignments",
                        ["functional_type", "functional_id"])
        op.create_index("idx_alignment_ord", "scorecard_alignments", ["ord_type", "ord_id"])

    # ── Progress audit ────────────────────────────────────────────────────
    if "progress_updates_history" not in existing:
        op.create_table(
            "progress_updates_history",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.String(length=50), nullable=False),
            sa.Column("field", sa.String(length=40), nullable=False,
                      comment="progress_updates | q<N>_<year>_progress"),
            sa.Column("previous_value", sa.Text(), nullable=True),
            sa.Column("new_value", sa.Text(), nullable=True),
            sa.Column("changed_by", sa.String(length=150), nullable=False),
            sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("idx_progress_history_program", "progress_updates_history", ["program_id"])
        op.create_index("idx_progress_history_ts", "progress_updates_history", ["changed_at"])

    # ── Id counters ───────────────────────────────────────────────────────
    if "id_sequences" not in existing:
        op.create_table(
            "id_sequences",
            sa.Column("prefix", sa.String(length=30), nullable=False),
            sa.Column("last_value", sa.Integer(), nullable=False),
            sa.PrimaryKeyConstraint("prefix"),
        )


def downgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    for table in (
        "id_sequences",
        "progress_updates_history",
        "scorecard_alignments",
        "functional_programs",
        "strategic_programs",
        "strategic_goals",
        "categories",
        "strategic_pillars",
    ):
        if table in existing:
            op.drop_table(table)
