"""
Strategic Scorecard Service
Tests: scorecard trees (ORD + functional).

Covers:
    - ORD nesting and ordering
    - Quarter window pruning
    - Functional grouping with composite keys and "Unspecified" defaults
    - Function filter + distinct functions
    - Alignment picker hierarchy
"""

from scorecard.services import hierarchy_service


def _programs(tree):
    return [
        program["id"]
        for pillar in tree["pillars"]
        for category in pillar["categories"]
        for goal in category["goals"]
        for program in goal["programs"]
    ]


# ═════════════════════════════════════════════════════════════════════════════
# ORD TREE
# ═════════════════════════════════════════════════════════════════════════════

class TestOrdTree:
    def test_nesting(self, client, hierarchy):
        res = client.get("/api/v1/scorecard")
        assert res.status_code == 200
        tree = res.get_json()
        assert [p["id"] for p in tree["pillars"]] == ["pillar-001", "pillar-002"]
        growth = tree["pillars"][0]
        assert [c["name"] for c in growth["categories"]] == ["Customers", "Revenue"]
        revenue = growth["categories"][1]
        assert revenue["goals"][0]["id"] == "goal-001"
        assert [p["id"] for p in revenue["goals"][0]["programs"]] == ["program-001", "program-002"]

    def test_empty_category_keeps_empty_goal_list(self, hierarchy):
        tree = hierarchy_service.get_scorecard_data()
        customers = tree["pillars"][0]["categories"][0]
        assert customers["id"] == "category-002"
        assert customers["goals"] == []

    def test_program_payload(self, hierarchy):
        tree = hierarchy_service.get_scorecard_data()
        program = tree["pillars"][0]["categories"][1]["goals"][0]["programs"][0]
        assert program["q1_2025_objective"] == "Pricing approved"
        assert program["q1_2025_status"] == "on-track"
        assert program["ord_lt_sponsors"] == ["Ana Ruiz"]
        assert "created_at" not in program

    def test_quarter_prunes_windows(self, client, hierarchy):
        res = client.get("/api/v1/scorecard?quarter=q1_2025")
        ids = _programs(res.get_json())
        assert "program-002" not in ids          # starts Q3-2025
        assert "program-003" in ids

        res = client.get("/api/v1/scorecard?quarter=Q4-2025")
        ids = _programs(res.get_json())
        assert "program-002" in ids
        assert "program-003" not in ids          # ended Q2-2025

    def test_invalid_quarter_400(self, client, hierarchy):
        res = client.get("/api/v1/scorecard?quarter=q9_2025")
        assert res.status_code == 400

    def test_empty_database(self, client):
        res = client.get("/api/v1/scorecard")
        assert res.status_code == 200
        assert res.get_json() == {"pillars": []}


# ═════════════════════════════════════════════════════════════════════════════
# FUNCTIONAL TREE
# ═════════════════════════════════════════════════════════════════════════════

class TestFunctionalTree:
    def test_grouping_and_keys(self, hierarchy):
        tree = hierarchy_service.get_functional_scorecard_data()
        names = [p["name"] for p in tree["pillars"]]
        assert names == ["Growth", "Unspecified Pillar"]

        growth = tree["pillars"][0]
        category = growth["categories"][0]
        assert category["id"] == "Growth|Sales"
        goal = category["goals"][0]
        assert goal["id"] == "Growth|Sales|Win enterprise"
        assert [p["id"] for p in goal["programs"]] == ["functional-002", "functional-001"]

    def test_unspecified_defaults(self, hierarchy):
        tree = hierarchy_service.get_functional_scorecard_data()
        unspecified = tree["pillars"][1]
        goal = unspecified["categories"][0]["goals"][0]
        assert goal["id"] == "Unspecified Pillar|Unspecified Category|Unspecified Goal"
        program = goal["programs"][0]
        assert program["sponsors_leads"] == ["(Not Specified)"]

    def test_filter_by_function(self, client, hierarchy):
        res = client.get("/api/v1/functional-scorecard?function=Finance")
        assert res.status_code == 200
        assert _programs(res.get_json()) == ["functional-001"]

    def test_distinct_functions(self, client, hierarchy):
        res = client.get("/api/v1/functional-scorecard/functions")
        assert res.get_json() == {"functions": ["Finance", "IT"]}


class TestAlignmentHierarchy:
    def test_both_sides(self, client, hierarchy):
        res = client.get("/api/v1/alignments/hierarchy")
        assert res.status_code == 200
        data = res.get_json()
        assert data["ord"][0]["type"] == "pillar"
        program = data["ord"][0]["children"][1]["children"][0]["children"][0]
        assert program == {
            "id": "program-001", "name": "Launch subscription tier", "type": "program", "children": [],
        }
        assert data["functional"][0]["id"] == "Growth"
