#!/usr/bin/env python3
"""Show DB record counts for all scorecard tables."""
import sys
sys.path.insert(0, ".")

from scorecard import create_app
from scorecard.models import db

TABLES = [
    "strategic_pillars", "categories", "strategic_goals", "strategic_programs",
    "functional_programs", "scorecard_alignments", "progress_updates_history",
    "id_sequences",
]

app = create_app()
with app.app_context():
    total = 0
    for t in TABLES:
        c = db.session.execute(db.text(f"SELECT COUNT(*) FROM {t}")).scalar()
        total += c
        print(f"    {t:.<30} {c}")
    print(f"    {'TOTAL':.<30} {total}")
