"""
Strategic Scorecard Service
Tests: inline field-path updates.

Covers:
    - ORD updates per level (category, goal, program)
    - Quarter normalisation incl. "_progress" suffix
    - Status vocabulary + required text
    - Ancestry mismatch → 400, unknown row → 404
    - Progress audit rows
    - Functional updates with composite paths
"""

import pytest

from scorecard.core.enums import ORD_UPDATE_TYPES
from scorecard.core.exceptions import ValidationError
from scorecard.models import db
from scorecard.models.audit import ProgressUpdateHistory
from scorecard.models.scorecard import Category, FunctionalProgram, StrategicGoal, StrategicProgram
from scorecard.services.field_update_service import perform_update, resolve_field_update

PROGRAM_PATH = ["pillar-001", "category-001", "goal-001", "program-001"]
GOAL_PATH = ["pillar-001", "category-001", "goal-001"]
CATEGORY_PATH = ["pillar-001", "category-001"]
FUNCTIONAL_PATH = [
    "Growth", "Growth|Sales", "Growth|Sales|Win enterprise", "functional-001",
]


def _update(client, **body):
    return client.post("/api/v1/scorecard/update", json=body)


# ═════════════════════════════════════════════════════════════════════════════
# RESOLUTION
# ═════════════════════════════════════════════════════════════════════════════

class TestResolve:
    def test_quarter_scoped_column(self, app):
        update = resolve_field_update("program-objective", PROGRAM_PATH, "Ship v2", "Q3-2025")
        assert update.column == "q3_2025_objective"
        assert update.expected_parents == {
            "pillar_id": "pillar-001", "category_id": "category-001", "goal_id": "goal-001",
        }

    def test_progress_suffix_accepted(self, app):
        update = resolve_field_update(
            "program-quarter-progress", PROGRAM_PATH, "Done", "q2_2026_progress",
        )
        assert update.column == "q2_2026_progress"

    def test_unknown_type(self, app):
        with pytest.raises(ValidationError):
            resolve_field_update("program-budget", PROGRAM_PATH, "1")

    def test_functional_type_rejected_on_ord(self, app):
        with pytest.raises(ValidationError):
            resolve_field_update("functional-program-text", PROGRAM_PATH, "x")

    def test_wrong_path_length(self, app):
        with pytest.raises(ValidationError) as exc:
            resolve_field_update("goal", PROGRAM_PATH, "on-track")
        assert exc.value.details["expected_length"] == 3

    def test_quarter_required(self, app):
        with pytest.raises(ValidationError):
            resolve_field_update("program", PROGRAM_PATH, "on-track")

    def test_bad_status(self, app):
        with pytest.raises(ValidationError):
            resolve_field_update("category", CATEGORY_PATH, "green")

    def test_empty_status_clears(self, app):
        update = resolve_field_update("category", CATEGORY_PATH, "")
        assert update.value is None

    def test_empty_text_rejected(self, app):
        with pytest.raises(ValidationError):
            resolve_field_update("program-text", PROGRAM_PATH, "   ")

    @pytest.mark.parametrize("update_type", ORD_UPDATE_TYPES)
    def test_every_ord_type_resolves(self, app, update_type):
        path = {"category": CATEGORY_PATH, "goal": GOAL_PATH}.get(update_type.split("-")[0], PROGRAM_PATH)
        value = "on-track" if update_type in ("program", "category", "goal", "goal-quarter") else "Text"
        update = resolve_field_update(update_type, path, value, "q1_2025")
        assert update.target_id == path[-1]


# ═════════════════════════════════════════════════════════════════════════════
# ORD UPDATES
# ═════════════════════════════════════════════════════════════════════════════

class TestOrdUpdates:
    def test_program_status(self, client, hierarchy):
        res = _update(client, update_type="program", field_path=PROGRAM_PATH,
                      new_value="delayed", quarter="q2_2025")
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        program = body["data"]["pillars"][0]["categories"][1]["goals"][0]["programs"][0]
        assert program["q2_2025_status"] == "delayed"

    def test_bare_quarter_changes_only_that_cell(self, client, hierarchy):
        before = db.session.get(StrategicProgram, "program-001").to_dict()
        others = [db.session.get(StrategicProgram, i).to_dict() for i in ("program-002", "program-003")]

        res = _update(client, type="program", field_path=PROGRAM_PATH, new_value="delayed", quarter="q2")
        assert res.status_code == 200

        after = db.session.get(StrategicProgram, "program-001").to_dict()
        changed = {k for k in after if after[k] != before[k]} - {"updated_at"}
        assert changed == {"q2_2025_status"}
        assert after["q2_2025_status"] == "delayed"
        assert [db.session.get(StrategicProgram, i).to_dict() for i in ("program-002", "program-003")] == others

    def test_legacy_type_key(self, client, hierarchy):
        res = _update(client, type="goal-text", field_path=GOAL_PATH, new_value="Grow ARR")
        assert res.status_code == 200
        assert db.session.get(StrategicGoal, "goal-001").text == "Grow ARR"

    def test_goal_quarter_status(self, client, hierarchy):
        res = _update(client, update_type="goal-quarter", field_path=GOAL_PATH,
                      new_value="exceeded", quarter="Q1-2026")
        assert res.status_code == 200
        assert db.session.get(StrategicGoal, "goal-001").q1_2026_status == "exceeded"

    def test_category_name(self, client, hierarchy):
        res = _update(client, update_type="category-name", field_path=CATEGORY_PATH,
                      new_value="Recurring Revenue")
        assert res.status_code == 200
        assert db.session.get(Category, "category-001").name == "Recurring Revenue"

    def test_ancestry_mismatch(self, client, hierarchy):
        path = ["pillar-002", "category-001", "goal-001", "program-001"]
        res = _update(client, update_type="program-text", field_path=path, new_value="Moved?")
        assert res.status_code == 400
        assert res.get_json()["details"]["pillar_id"] == {
            "expected": "pillar-002", "actual": "pillar-001",
        }
        assert db.session.get(StrategicProgram, "program-001").text == "Launch subscription tier"

    def test_unknown_program(self, client, hierarchy):
        path = ["pillar-001", "category-001", "goal-001", "program-999"]
        res = _update(client, update_type="program-text", field_path=path, new_value="x")
        assert res.status_code == 404

    def test_untracked_quarter(self, client, hierarchy):
        res = _update(client, update_type="program-objective", field_path=PROGRAM_PATH,
                      new_value="x", quarter="q1_2031")
        assert res.status_code == 400

    def test_missing_body(self, client, hierarchy):
        res = client.post("/api/v1/scorecard/update")
        assert res.status_code == 400


class TestProgressAudit:
    def test_progress_change_recorded(self, client, hierarchy):
        res = _update(client, update_type="program-progress", field_path=PROGRAM_PATH,
                      new_value="Pricing model signed off", changed_by="kim@example.com")
        assert res.status_code == 200
        rows = db.session.query(ProgressUpdateHistory).all()
        assert len(rows) == 1
        assert rows[0].field == "progress_updates"
        assert rows[0].previous_value == "Pricing model drafted"
        assert rows[0].new_value == "Pricing model signed off"
        assert rows[0].changed_by == "kim@example.com"

    def test_quarter_progress_recorded(self, hierarchy):
        perform_update("program-quarter-progress", PROGRAM_PATH, "Beta live", "q3_2025")
        row = db.session.query(ProgressUpdateHistory).one()
        assert row.field == "q3_2025_progress"
        assert row.changed_by == "system"

    def test_unchanged_value_not_recorded(self, hierarchy):
        perform_update("program-progress", PROGRAM_PATH, "Pricing model drafted")
        assert db.session.query(ProgressUpdateHistory).count() == 0

    def test_history_feed(self, client, hierarchy):
        perform_update("program-progress", PROGRAM_PATH, "v2")
        res = client.get("/api/v1/admin/progress-history?program_id=program-001")
        history = res.get_json()["history"]
        assert history[0]["program_text"] == "Launch subscription tier"
        assert history[0]["new_value"] == "v2"


# ═════════════════════════════════════════════════════════════════════════════
# FUNCTIONAL UPDATES
# ═════════════════════════════════════════════════════════════════════════════

class TestFunctionalUpdates:
    def test_objective(self, client, hierarchy):
        res = client.post("/api/v1/functional-scorecard/update", json={
            "update_type": "functional-program-objective",
            "field_path": FUNCTIONAL_PATH,
            "new_value": "Close in 3 days",
            "quarter": "q4_2025",
        })
        assert res.status_code == 200
        assert db.session.get(FunctionalProgram, "functional-001").q4_2025_objective == "Close in 3 days"

    def test_ord_type_rejected(self, client, hierarchy):
        res = client.post("/api/v1/functional-scorecard/update", json={
            "update_type": "program-text",
            "field_path": FUNCTIONAL_PATH,
            "new_value": "x",
        })
        assert res.status_code == 400

    def test_composite_mismatch(self, client, hierarchy):
        path = ["Growth", "Growth|Ops", "Growth|Ops|Win enterprise", "functional-001"]
        res = client.post("/api/v1/functional-scorecard/update", json={
            "update_type": "functional-program-text", "field_path": path, "new_value": "x",
        })
        assert res.status_code == 400

    def test_unspecified_path(self, client, hierarchy):
        path = [
            "Unspecified Pillar",
            "Unspecified Pillar|Unspecified Category",
            "Unspecified Pillar|Unspecified Category|Unspecified Goal",
            "functional-003",
        ]
        res = client.post("/api/v1/functional-scorecard/update", json={
            "update_type": "functional-program-text", "field_path": path, "new_value": "Laptops",
        })
        assert res.status_code == 200
