"""Hierarchy assembly: flat rows → nested scorecard trees.

Read-only.  Every call re-reads the tables and re-groups in memory; there
is no cache.

ORD tree (four tables):
    pillars ─┬─ categories ─┬─ goals ─┬─ programs

Functional tree (one flat table): pillar / category / goal levels are
synthesised from the text columns of ``functional_programs`` using
composite keys:
    pillar   id = "<pillar>"
    category id = "<pillar>|<category>"
    goal     id = "<pillar>|<category>|<goal>"
"""
import logging
from collections import OrderedDict, defaultdict

from scorecard.core.quarters import is_item_visible
from scorecard.models import db
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicPillar, StrategicProgram,
)

logger = logging.getLogger(__name__)

UNSPECIFIED_PILLAR = "Unspecified Pillar"
UNSPECIFIED_CATEGORY = "Unspecified Category"
UNSPECIFIED_GOAL = "Unspecified Goal"
NOT_SPECIFIED = "(Not Specified)"

KEY_SEPARATOR = "|"


def _strip_timestamps(d: dict) -> dict:
    d.pop("created_at", None)
    return d


def _visible(row, selected_quarter) -> bool:
    if not selected_quarter:
        return True
    return is_item_visible(selected_quarter, row.start_quarter, row.end_quarter)


# ═════════════════════════════════════════════════════════════════════════════
# ORD hierarchy
# ═════════════════════════════════════════════════════════════════════════════


def get_scorecard_data(selected_quarter: str | None = None) -> dict:
    """Assemble the ORD tree.

    Args:
        selected_quarter: optional quarter ("q3_2025", "Q3-2025"); nodes whose
            start/end window excludes it are pruned together with their subtree.

    Returns:
        {"pillars": [ {..., "categories": [ {..., "goals": [ {..., "programs": [...]}]}]}]}
    """
    pillars = db.session.query(StrategicPillar).order_by(StrategicPillar.id).all()
    categories = db.session.query(Category).order_by(Category.pillar_id, Category.name).all()
    goals = db.session.query(StrategicGoal).order_by(
        StrategicGoal.category_id, StrategicGoal.text,
    ).all()
    programs = db.session.query(StrategicProgram).order_by(
        StrategicProgram.goal_id, StrategicProgram.text,
    ).all()

    programs_by_goal = defaultdict(list)
    for program in programs:
        if _visible(program, selected_quarter):
            programs_by_goal[program.goal_id].append(_strip_timestamps(program.to_dict()))

    goals_by_category = defaultdict(list)
    for goal in goals:
        if not _visible(goal, selected_quarter):
            continue
        node = _strip_timestamps(goal.to_dict())
        node["programs"] = programs_by_goal.get(goal.id, [])
        goals_by_category[goal.category_id].append(node)

    categories_by_pillar = defaultdict(list)
    for category in categories:
        if not _visible(category, selected_quarter):
            continue
        node = _strip_timestamps(category.to_dict())
        node["goals"] = goals_by_category.get(category.id, [])
        categories_by_pillar[category.pillar_id].append(node)

    tree = []
    for pillar in pillars:
        if not _visible(pillar, selected_quarter):
            continue
        node = _strip_timestamps(pillar.to_dict())
        node["categories"] = categories_by_pillar.get(pillar.id, [])
        tree.append(node)

    logger.debug(
        "Assembled ORD scorecard: %d pillars, %d categories, %d goals, %d programs",
        len(pillars), len(categories), len(goals), len(programs),
    )
    return {"pillars": tree}


# ═════════════════════════════════════════════════════════════════════════════
# Functional hierarchy
# ═════════════════════════════════════════════════════════════════════════════


def functional_keys(pillar: str | None, category: str | None, goal: str | None) -> tuple[str, str, str]:
    """Composite (pillar_id, category_id, goal_id) for a functional program row."""
    pillar_name = pillar or UNSPECIFIED_PILLAR
    category_name = category or UNSPECIFIED_CATEGORY
    goal_name = goal or UNSPECIFIED_GOAL
    pillar_id = pillar_name
    category_id = KEY_SEPARATOR.join((pillar_name, category_name))
    goal_id = KEY_SEPARATOR.join((pillar_name, category_name, goal_name))
    return pillar_id, category_id, goal_id


def _functional_program_node(row: FunctionalProgram) -> dict:
    node = _strip_timestamps(row.to_dict())
    pillar_id, category_id, goal_id = functional_keys(row.pillar, row.category, row.strategic_goal)
    node["pillar_id"] = pillar_id
    node["category_id"] = category_id
    node["goal_id"] = goal_id
    for field in ("ord_lt_sponsors", "sponsors_leads", "reporting_owners"):
        if not node[field]:
            node[field] = [NOT_SPECIFIED]
    return node


def _functional_sort_key(row: FunctionalProgram):
    return (
        row.pillar or UNSPECIFIED_PILLAR,
        row.category or UNSPECIFIED_CATEGORY,
        row.strategic_goal or UNSPECIFIED_GOAL,
        row.text or "",
    )


def get_functional_scorecard_data(function: str | None = None,
                                  selected_quarter: str | None = None) -> dict:
    """Assemble the functional tree, optionally restricted to one ``function``."""
    query = db.session.query(FunctionalProgram)
    if function:
        query = query.filter(FunctionalProgram.function == function)
    rows = sorted(query.all(), key=_functional_sort_key)

    pillars: "OrderedDict[str, dict]" = OrderedDict()
    categories: "OrderedDict[str, dict]" = OrderedDict()
    goals: "OrderedDict[str, dict]" = OrderedDict()

    for row in rows:
        if not _visible(row, selected_quarter):
            continue
        pillar_name = row.pillar or UNSPECIFIED_PILLAR
        category_name = row.category or UNSPECIFIED_CATEGORY
        goal_name = row.strategic_goal or UNSPECIFIED_GOAL
        pillar_id, category_id, goal_id = functional_keys(row.pillar, row.category, row.strategic_goal)

        if pillar_id not in pillars:
            pillars[pillar_id] = {"id": pillar_id, "name": pillar_name, "categories": []}
        if category_id not in categories:
            categories[category_id] = {
                "id": category_id,
                "name": category_name,
                "pillar_id": pillar_id,
                "goals": [],
            }
            pillars[pillar_id]["categories"].append(categories[category_id])
        if goal_id not in goals:
            goals[goal_id] = {
                "id": goal_id,
                "text": goal_name,
                "category_id": category_id,
                "pillar_id": pillar_id,
                "ord_lt_sponsors": [NOT_SPECIFIED],
                "sponsors_leads": [NOT_SPECIFIED],
                "reporting_owners": [NOT_SPECIFIED],
                "programs": [],
            }
            categories[category_id]["goals"].append(goals[goal_id])

        goals[goal_id]["programs"].append(_functional_program_node(row))

    logger.debug(
        "Assembled functional scorecard (function=%s): %d pillars, %d programs",
        function, len(pillars), len(rows),
    )
    return {"pillars": list(pillars.values())}


def get_distinct_functions() -> list[str]:
    """Sorted distinct non-empty ``function`` values."""
    rows = (
        db.session.query(FunctionalProgram.function)
        .filter(FunctionalProgram.function.isnot(None), FunctionalProgram.function != "")
        .distinct()
        .all()
    )
    return sorted(r[0] for r in rows)


# ═════════════════════════════════════════════════════════════════════════════
# Light view for the alignment picker
# ═════════════════════════════════════════════════════════════════════════════


def to_alignment_hierarchy(tree: dict) -> list[dict]:
    """Reduce a scorecard tree to ``{id, name, type, children}`` nodes."""
    result = []
    for pillar in tree.get("pillars", []):
        result.append({
            "id": pillar["id"],
            "name": pillar["name"],
            "type": "pillar",
            "children": [
                {
                    "id": category["id"],
                    "name": category["name"],
                    "type": "category",
                    "children": [
                        {
                            "id": goal["id"],
                            "name": goal["text"],
                            "type": "goal",
                            "children": [
                                {"id": p["id"], "name": p["text"], "type": "program", "children": []}
                                for p in goal.get("programs", [])
                            ],
                        }
                        for goal in category.get("goals", [])
                    ],
                }
                for category in pillar.get("categories", [])
            ],
        })
    return result


def get_alignment_hierarchy() -> dict:
    return {
        "ord": to_alignment_hierarchy(get_scorecard_data()),
        "functional": to_alignment_hierarchy(get_functional_scorecard_data()),
    }
