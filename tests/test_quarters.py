"""
Strategic Scorecard Service
Tests: quarter parsing and visibility windows.

Covers:
    - parse_quarter spellings and rejection
    - normalize_quarter → tracked column key, quarter_column
    - label parsing + ordering
    - is_item_visible window semantics
    - current / previous quarter helpers
"""

from datetime import date

import pytest

from scorecard.core.exceptions import ValidationError
from scorecard.core.quarters import (
    compare_quarters, current_quarter, is_item_visible, normalize_quarter, parse_quarter,
    parse_quarter_label, previous_quarter, quarter_column,
)


class TestParseQuarter:
    @pytest.mark.parametrize("raw", ["q3_2025", "Q3-2025", "q3 2025", "3-2025", "  Q3   2025 "])
    def test_spellings(self, raw):
        assert parse_quarter(raw) == (2025, 3)

    def test_bare_quarter_uses_default_year(self):
        assert parse_quarter("q2", default_year=2026) == (2026, 2)

    def test_bare_quarter_without_default_is_rejected(self):
        assert parse_quarter("q2") is None

    @pytest.mark.parametrize("raw", [None, "", "q5_2025", "quarter", "2025"])
    def test_unrecognised(self, raw):
        assert parse_quarter(raw) is None


class TestNormalizeQuarter:
    def test_label_to_key(self):
        assert normalize_quarter("Q4-2026", 2025) == "q4_2026"

    def test_bare_quarter(self):
        assert normalize_quarter("q1", 2025) == "q1_2025"

    def test_missing(self):
        with pytest.raises(ValidationError):
            normalize_quarter(None, 2025)

    def test_untracked_year(self):
        with pytest.raises(ValidationError) as exc:
            normalize_quarter("q1_2030", 2025)
        assert "not tracked" in str(exc.value)

    def test_garbage(self):
        with pytest.raises(ValidationError):
            normalize_quarter("next quarter", 2025)


class TestVisibility:
    def test_no_window_always_visible(self):
        assert is_item_visible("q1_2025", None, None)

    def test_start_only(self):
        assert not is_item_visible("q2_2025", "Q3-2025", None)
        assert is_item_visible("q3_2025", "Q3-2025", None)
        assert is_item_visible("q1_2026", "Q3-2025", None)

    def test_end_only(self):
        assert is_item_visible("q2_2025", None, "Q2-2025")
        assert not is_item_visible("q3_2025", None, "Q2-2025")

    def test_inclusive_range(self):
        assert is_item_visible("q4_2025", "Q4-2025", "Q1-2026")
        assert is_item_visible("q1_2026", "Q4-2025", "Q1-2026")
        assert not is_item_visible("q2_2026", "Q4-2025", "Q1-2026")

    def test_unparseable_selection_shows_everything(self):
        assert is_item_visible("someday", "Q3-2025", "Q4-2025")


class TestQuarterHelpers:
    def test_current_quarter(self):
        info = current_quarter(date(2025, 8, 14))
        assert info["key"] == "q3_2025"
        assert info["label"] == "Q3-2025"
        assert info["progress_column"] == "q3_2025_progress"

    def test_previous_quarter_wraps_year(self):
        info = previous_quarter(date(2026, 2, 1))
        assert (info["year"], info["quarter"]) == (2025, 4)


class TestColumnsAndOrdering:
    def test_quarter_column(self):
        assert quarter_column("q2_2026", "progress") == "q2_2026_progress"

    def test_quarter_column_untracked(self):
        with pytest.raises(ValidationError):
            quarter_column("q2_2031", "status")

    def test_parse_label(self):
        assert parse_quarter_label("Q4-2025") == (2025, 4)
        assert parse_quarter_label("Q4") is None

    def test_compare(self):
        assert compare_quarters((2025, 4), (2026, 1)) == -1
        assert compare_quarters((2026, 1), (2026, 1)) == 0
        assert compare_quarters((2026, 2), (2025, 3)) == 1
