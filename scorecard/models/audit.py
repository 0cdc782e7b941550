"""
Strategic Scorecard Service
Progress audit model.

Models:
    - ProgressUpdateHistory: immutable, append-only record of every change
      to a program's progress text (overall or per quarter).
"""

from datetime import datetime, timezone

from sqlalchemy import event

from scorecard.models import db


class ProgressUpdateHistory(db.Model):
    """
    One row per progress change.  Rows are inserted in the same transaction
    as the change they record and are never updated or deleted.
    """

    __tablename__ = "progress_updates_history"
    __table_args__ = (
        db.Index("idx_progress_history_program", "program_id"),
        db.Index("idx_progress_history_ts", "changed_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.String(50), nullable=False, comment="strategic_programs.id (not FK: history outlives rows)")
    field = db.Column(db.String(40), nullable=False, default="progress_updates",
                      comment="progress_updates | q<N>_<year>_progress")
    previous_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    changed_by = db.Column(db.String(150), nullable=False, default="system")
    changed_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "program_id": self.program_id,
            "field": self.field,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "changed_by": self.changed_by,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        }

    def __repr__(self):
        return f"<ProgressUpdateHistory {self.id}: {self.program_id}.{self.field}>"


@event.listens_for(ProgressUpdateHistory, "before_update")
def _reject_update(mapper, connection, target):
    raise RuntimeError("progress_updates_history rows are append-only")


@event.listens_for(ProgressUpdateHistory, "before_delete")
def _reject_delete(mapper, connection, target):
    raise RuntimeError("progress_updates_history rows are append-only")


# ── Convenience writer ───────────────────────────────────────────────────────


def record_progress_change(
    *,
    program_id: str,
    field: str,
    previous_value: str | None,
    new_value: str | None,
    changed_by: str | None = None,
) -> ProgressUpdateHistory | None:
    """
    Append a history row if the value actually changed.  Uses ``flush`` so
    the caller keeps transaction control.
    """
    if (previous_value or None) == (new_value or None):
        return None
    row = ProgressUpdateHistory(
        program_id=program_id,
        field=field,
        previous_value=previous_value,
        new_value=new_value,
        changed_by=changed_by or "system",
    )
    db.session.add(row)
    db.session.flush()
    return row
