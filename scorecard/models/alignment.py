"""
Strategic Scorecard Service
Alignment model: cross-hierarchy links.

An Alignment is a labelled edge from a node of the functional hierarchy to
a node of the ORD hierarchy.  Either end may be a pillar, category, goal
or program; the node id is stored as text because functional pillars,
categories and goals are addressed by composite name keys.
"""

from datetime import datetime, timezone

from scorecard.core.enums import DEFAULT_CREATED_BY
from scorecard.models import db


class Alignment(db.Model):
    __tablename__ = "scorecard_alignments"
    __table_args__ = (
        db.UniqueConstraint(
            "functional_type", "functional_id", "ord_type", "ord_id",
            name="uq_alignment_endpoints",
        ),
        db.Index("idx_alignment_functional", "functional_type", "functional_id"),
        db.Index("idx_alignment_ord", "ord_type", "ord_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    functional_type = db.Column(db.String(20), nullable=False, comment="pillar | category | goal | program")
    functional_id = db.Column(db.String(600), nullable=False)
    ord_type = db.Column(db.String(20), nullable=False, comment="pillar | category | goal | program")
    ord_id = db.Column(db.String(50), nullable=False)
    strength = db.Column(db.String(20), nullable=False, comment="strong | moderate | weak | informational")
    rationale = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(150), nullable=False, default=DEFAULT_CREATED_BY)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "functional_type": self.functional_type,
            "functional_id": self.functional_id,
            "ord_type": self.ord_type,
            "ord_id": self.ord_id,
            "strength": self.strength,
            "rationale": self.rationale,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return (f"<Alignment {self.id}: {self.functional_type}:{self.functional_id} "
                f"→ {self.ord_type}:{self.ord_id} ({self.strength})>")
