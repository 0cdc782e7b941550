"""
Strategic Scorecard Service
Tests: planning workbook import.

Covers:
    - BRAG status mapping
    - Header-keyed row reading, blank rows, float ids
    - Quarter headers with and without a year
    - Relationship checks + skip counts
    - Idempotent re-import; alignments / functional rows untouched
    - Missing workbook → WorkbookImportError
"""

import pytest
from openpyxl import Workbook

from scorecard.models import db
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicPillar, StrategicProgram,
)
from scorecard.services.import_service import (
    DEFAULT_FILES, WorkbookImportError, import_workbooks, map_status, read_workbook_rows,
)


def _snapshot():
    rows = {}
    for model in (StrategicPillar, Category, StrategicGoal, StrategicProgram):
        rows[model.__tablename__] = [
            {k: v for k, v in r.to_dict().items() if k not in ("created_at", "updated_at")}
            for r in db.session.query(model).order_by(model.id)
        ]
    return rows


def _write(path, header, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append(row)
    wb.save(path)


@pytest.fixture()
def workbooks(tmp_path):
    _write(tmp_path / DEFAULT_FILES["pillars"], ["StrategicPillarID", "Strategic Pillar"], [
        ["pillar-001", "Growth"],
        ["pillar-002", "Operations"],
        [None, None],
        ["pillar-001", "Duplicate"],
    ])
    _write(tmp_path / DEFAULT_FILES["categories"],
           ["CategoryID", "Category", "StrategicPillarID", "Status", "Comments"], [
        ["category-001", "Revenue", "pillar-001", "Green", "Solid quarter"],
        ["category-002", "Efficiency", "pillar-002", "undefined", None],
        ["category-003", "Orphan", "pillar-404", "Red", None],
    ])
    _write(tmp_path / DEFAULT_FILES["goals"],
           ["StrategicGoalID", "Strategic Goal", "CategoryID", "StrategicPillarID",
            "Status", "Comments", "Q1 Objective", "Q1 Status"], [
        ["goal-001", "Grow recurring revenue", "category-001", "pillar-001", "Amber", None,
         "Pricing live", "Blue"],
        ["goal-002", "Reduce cycle time", "category-002", "pillar-002", None, None, None, None],
        ["goal-003", "Wrong pillar", "category-001", "pillar-002", None, None, None, None],
    ])
    _write(tmp_path / DEFAULT_FILES["programs"],
           ["StrategicProgramID", "Strategic Program", "StrategicGoalID", "CategoryID",
            "StrategicPillarID", "Q1 Objective", "Q1 Status", "Q1 2026 Objective",
            "ORD LT Sponsor(s)", "Sponsor(s)/Lead(s)", "Reporting owner(s)", "Progress Updates"], [
        ["program-001", "Launch subscription tier", "goal-001", "category-001", "pillar-001",
         "Pricing approved", "Green", "Upsell live", "Ana Ruiz; Lee Chen", "Sam Lee", None,
         "Drafted"],
        ["program-002", "Automate invoicing", "goal-002", "category-002", "pillar-002",
         None, "purple", None, None, None, "Kim Park\nRaj Iyer", None],
        ["program-003", "Missing goal", "goal-404", "category-001", "pillar-001",
         None, None, None, None, None, None, None],
    ])
    return tmp_path


class TestMapStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("Green", "on-track"),
        ("BLUE", "exceeded"),
        (" amber ", "delayed"),
        ("red", "missed"),
        ("on-track", "on-track"),
        ("Missed", "missed"),
        ("", None),
        (None, None),
        ("Undefined", None),
        ("purple", None),
    ])
    def test_mapping(self, raw, expected):
        assert map_status(raw) == expected


class TestReadRows:
    def test_blank_rows_dropped(self, workbooks):
        rows = read_workbook_rows(str(workbooks / DEFAULT_FILES["pillars"]))
        assert len(rows) == 3
        assert rows[0] == {"StrategicPillarID": "pillar-001", "Strategic Pillar": "Growth"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(WorkbookImportError):
            read_workbook_rows(str(tmp_path / "nope.xlsx"))

    def test_not_a_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_text("not a zip")
        with pytest.raises(WorkbookImportError):
            read_workbook_rows(str(path))


class TestImport:
    def test_counts(self, workbooks):
        counts = import_workbooks(str(workbooks))
        assert counts == {
            "pillars": {"inserted": 2, "skipped": 1},
            "categories": {"inserted": 2, "skipped": 1},
            "goals": {"inserted": 2, "skipped": 1},
            "programs": {"inserted": 2, "skipped": 1},
        }

    def test_values(self, workbooks):
        import_workbooks(str(workbooks))
        category = db.session.get(Category, "category-001")
        assert category.status == "on-track"
        assert category.comments == "Solid quarter"
        assert db.session.get(Category, "category-002").status is None

        goal = db.session.get(StrategicGoal, "goal-001")
        assert goal.status == "delayed"
        assert goal.q1_2025_objective == "Pricing live"
        assert goal.q1_2025_status == "exceeded"

        program = db.session.get(StrategicProgram, "program-001")
        assert program.q1_2025_status == "on-track"
        assert program.q1_2026_objective == "Upsell live"
        assert program.ord_lt_sponsors == ["Ana Ruiz", "Lee Chen"]
        assert program.progress_updates == "Drafted"

        other = db.session.get(StrategicProgram, "program-002")
        assert other.q1_2025_status is None
        assert other.reporting_owners == ["Kim Park", "Raj Iyer"]

    def test_explicit_default_year(self, workbooks):
        import_workbooks(str(workbooks), default_year=2026)
        goal = db.session.get(StrategicGoal, "goal-001")
        assert goal.q1_2026_objective == "Pricing live"
        assert goal.q1_2025_objective is None

    def test_reimport_replaces(self, workbooks, hierarchy):
        import_workbooks(str(workbooks))
        first = _snapshot()
        import_workbooks(str(workbooks))
        assert _snapshot() == first
        assert db.session.query(StrategicPillar).count() == 2
        assert db.session.query(StrategicProgram).count() == 2
        assert db.session.get(StrategicProgram, "program-003") is None
        assert db.session.query(FunctionalProgram).count() == 3

    def test_missing_workbook_leaves_data(self, tmp_path, hierarchy):
        with pytest.raises(WorkbookImportError):
            import_workbooks(str(tmp_path))
        assert db.session.query(StrategicProgram).count() == 3

    def test_cli_command(self, app, workbooks):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["import-xlsx", "--data-dir", str(workbooks)])
        assert result.exit_code == 0
        assert "inserted=2" in result.output
