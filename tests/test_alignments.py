"""
Strategic Scorecard Service
Tests: alignments between functional and ORD nodes.

Covers:
    - Create: validation, endpoint existence, duplicate → 409
    - Enriched names + paths on both ends
    - Read by node / count / list
    - Update + delete
    - Bulk create / update / delete with partial failure (207)
    - Search (exclusion before the result cap) and unaligned lists
    - Functional names containing the key separator
"""

from scorecard.models import db
from scorecard.models.alignment import Alignment
from scorecard.models.scorecard import FunctionalProgram, StrategicPillar
from scorecard.services import alignment_service

BASE = "/api/v1/alignments"


def _payload(**kw):
    data = {
        "functional_type": "program",
        "functional_id": "functional-001",
        "ord_type": "goal",
        "ord_id": "goal-001",
        "strength": "strong",
        "rationale": "Close automation funds growth",
    }
    data.update(kw)
    return data


def _create(client, **kw):
    res = client.post(BASE, json=_payload(**kw))
    assert res.status_code == 201, res.get_json()
    return res.get_json()


# ═════════════════════════════════════════════════════════════════════════════
# CREATE
# ═════════════════════════════════════════════════════════════════════════════

class TestCreate:
    def test_create_enriched(self, client, hierarchy):
        body = _create(client)
        assert body["created_by"] == "system"
        assert body["functional_name"] == "Finance close automation"
        assert body["functional_path"] == "Growth > Sales > Win enterprise > Finance close automation"
        assert body["ord_name"] == "Grow recurring revenue"
        assert body["ord_path"] == "Growth > Revenue > Grow recurring revenue"

    def test_functional_goal_by_composite_key(self, client, hierarchy):
        body = _create(client, functional_type="goal",
                       functional_id="Growth|Sales|Win enterprise", ord_type="pillar",
                       ord_id="pillar-001")
        assert body["functional_name"] == "Win enterprise"
        assert body["functional_path"] == "Growth > Sales > Win enterprise"
        assert body["ord_path"] == "Growth"

    def test_unspecified_functional_pillar(self, client, hierarchy):
        body = _create(client, functional_type="pillar", functional_id="Unspecified Pillar")
        assert body["functional_name"] == "Unspecified Pillar"

    def test_functional_name_containing_separator(self, client, hierarchy):
        db.session.add(FunctionalProgram(id="functional-010", text="Lab tooling", pillar="R&D|Labs",
                                         category="Research", strategic_goal="Faster trials"))
        db.session.commit()
        tree = client.get("/api/v1/functional-scorecard").get_json()
        assert "R&D|Labs" in {p["id"] for p in tree["pillars"]}

        body = _create(client, functional_type="pillar", functional_id="R&D|Labs")
        assert body["functional_name"] == "R&D|Labs"

        body = _create(client, functional_type="goal",
                       functional_id="R&D|Labs|Research|Faster trials", ord_id="goal-002")
        assert body["functional_path"] == "R&D|Labs > Research > Faster trials"

    def test_duplicate(self, client, hierarchy):
        _create(client)
        res = client.post(BASE, json=_payload(strength="weak"))
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"
        assert db.session.query(Alignment).count() == 1

    def test_invalid_strength(self, client, hierarchy):
        res = client.post(BASE, json=_payload(strength="huge"))
        assert res.status_code == 400

    def test_invalid_type(self, client, hierarchy):
        res = client.post(BASE, json=_payload(ord_type="initiative"))
        assert res.status_code == 400

    def test_missing_ord_node(self, client, hierarchy):
        res = client.post(BASE, json=_payload(ord_id="goal-404"))
        assert res.status_code == 404

    def test_missing_functional_node(self, client, hierarchy):
        res = client.post(BASE, json=_payload(functional_type="category",
                                              functional_id="Growth|Marketing"))
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# READ / UPDATE / DELETE
# ═════════════════════════════════════════════════════════════════════════════

class TestReadUpdateDelete:
    def test_get_by_either_side(self, client, hierarchy):
        _create(client)
        _create(client, ord_type="program", ord_id="program-001")

        res = client.get(f"{BASE}?type=program&id=functional-001")
        assert len(res.get_json()["alignments"]) == 2

        res = client.get(f"{BASE}?type=goal&id=goal-001&source=ord")
        assert len(res.get_json()["alignments"]) == 1

        res = client.get(f"{BASE}?type=goal&id=goal-001&source=functional")
        assert res.get_json()["alignments"] == []

    def test_get_requires_params(self, client, hierarchy):
        assert client.get(f"{BASE}?type=goal").status_code == 400
        assert client.get(f"{BASE}?type=goal&id=goal-001&source=hr").status_code == 400

    def test_count(self, client, hierarchy):
        _create(client)
        res = client.get(f"{BASE}/count?type=goal&id=goal-001")
        assert res.get_json() == {"count": 1}

    def test_list_all(self, client, hierarchy):
        _create(client)
        _create(client, ord_type="category", ord_id="category-003")
        res = client.get(f"{BASE}/all?limit=1")
        body = res.get_json()
        assert body["total"] == 1
        assert body["alignments"][0]["ord_id"] == "category-003"

    def test_update(self, client, hierarchy):
        created = _create(client)
        res = client.patch(f"{BASE}?id={created['id']}", json={"strength": "moderate", "rationale": None})
        assert res.status_code == 200
        body = res.get_json()
        assert body["strength"] == "moderate"
        assert body["rationale"] is None

    def test_update_rejects_non_string_rationale(self, client, hierarchy):
        created = _create(client)
        res = client.patch(f"{BASE}?id={created['id']}", json={"rationale": 123})
        assert res.status_code == 400
        assert db.session.get(Alignment, created["id"]).rationale == "Close automation funds growth"

    def test_update_rejects_endpoint_change(self, client, hierarchy):
        created = _create(client)
        res = client.patch(BASE, json={"id": created["id"], "ord_id": "goal-002"})
        assert res.status_code == 400

    def test_update_not_found(self, client, hierarchy):
        res = client.patch(f"{BASE}?id=999", json={"strength": "weak"})
        assert res.status_code == 404

    def test_delete(self, client, hierarchy):
        created = _create(client)
        res = client.delete(f"{BASE}?id={created['id']}")
        assert res.status_code == 200
        assert db.session.query(Alignment).count() == 0

    def test_delete_non_integer_id(self, client, hierarchy):
        res = client.delete(f"{BASE}?id=abc")
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# BULK
# ═════════════════════════════════════════════════════════════════════════════

class TestBulk:
    def test_bulk_create_all_ok(self, client, hierarchy):
        res = client.post(f"{BASE}/bulk", json={"alignments": [
            _payload(),
            _payload(ord_type="program", ord_id="program-003", strength="weak"),
        ]})
        assert res.status_code == 200
        body = res.get_json()
        assert body["successful"] == 2
        assert body["results"][0]["alignment"]["created_by"] == "bulk-import"

    def test_bulk_create_partial(self, client, hierarchy):
        res = client.post(f"{BASE}/bulk", json={"alignments": [
            _payload(),
            _payload(strength="enormous"),
            _payload(),
        ]})
        assert res.status_code == 207
        body = res.get_json()
        assert body["success"] is False
        assert (body["processed"], body["successful"], body["failed"]) == (3, 1, 2)
        assert [e["index"] for e in body["errors"]] == [1, 2]
        assert db.session.query(Alignment).count() == 1

    def test_bulk_update(self, client, hierarchy):
        created = _create(client)
        res = client.patch(f"{BASE}/bulk", json={"updates": [
            {"id": created["id"], "strength": "weak"},
            {"strength": "weak"},
        ]})
        assert res.status_code == 207
        assert db.session.get(Alignment, created["id"]).strength == "weak"

    def test_bulk_delete(self, client, hierarchy):
        first = _create(client)
        second = _create(client, ord_type="pillar", ord_id="pillar-002")
        res = client.delete(f"{BASE}/bulk", json={"ids": [first["id"], second["id"]]})
        assert res.status_code == 200
        assert res.get_json()["successful"] == 2

    def test_bulk_requires_list(self, client, hierarchy):
        res = client.post(f"{BASE}/bulk", json={"alignments": []})
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# SEARCH / UNALIGNED
# ═════════════════════════════════════════════════════════════════════════════

class TestSearch:
    def test_short_term(self, client, hierarchy):
        res = client.get(f"{BASE}/search?q=a")
        assert res.status_code == 400

    def test_across_hierarchies(self, client, hierarchy):
        res = client.get(f"{BASE}/search?q=auto")
        results = res.get_json()["results"]
        assert [(r["source"], r["id"]) for r in results] == [
            ("ord", "program-003"),
            ("functional", "functional-001"),
        ]
        assert results[0]["path"] == "Operations > Efficiency > Reduce cycle time > Automate invoicing"

    def test_exclude(self, hierarchy):
        results = alignment_service.search_alignment_targets(
            "rev", exclude_type="category", exclude_id="category-001",
        )
        assert {r["id"] for r in results} == {"goal-001"}


    def test_exclude_applied_before_limit(self, hierarchy):
        db.session.add_all([
            StrategicPillar(id=f"pillar-{n:03d}", name=f"Alpha {n:02d}") for n in range(3, 24)
        ])
        db.session.commit()
        results = alignment_service.search_alignment_targets(
            "Alpha", exclude_type="pillar", exclude_id="pillar-010",
        )
        assert len(results) == 20
        assert "pillar-010" not in {r["id"] for r in results}

class TestUnaligned:
    def test_everything_unaligned(self, client, hierarchy):
        data = client.get(f"{BASE}/unaligned").get_json()
        ord_ids = {(i["type"], i["id"]) for i in data["ord"]}
        assert ("program", "program-001") in ord_ids
        assert ("goal", "goal-001") in ord_ids
        functional_ids = {(i["type"], i["id"]) for i in data["functional"]}
        assert ("program", "functional-003") in functional_ids
        assert ("goal", "Growth|Sales|Win enterprise") in functional_ids

    def test_aligned_items_drop_out(self, client, hierarchy):
        _create(client, ord_type="program", ord_id="program-001")
        data = client.get(f"{BASE}/unaligned").get_json()
        assert ("program", "program-001") not in {(i["type"], i["id"]) for i in data["ord"]}
        assert "functional-001" not in {i["id"] for i in data["functional"]}
