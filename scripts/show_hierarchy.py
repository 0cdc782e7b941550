#!/usr/bin/env python3
"""
Print the ORD scorecard tree for a quarter.

Usage:
    python scripts/show_hierarchy.py               # every node
    python scripts/show_hierarchy.py --quarter q3_2025
    python scripts/show_hierarchy.py --functional --function Finance
"""

import argparse
import sys

sys.path.insert(0, ".")

from scorecard import create_app
from scorecard.core.quarters import normalize_quarter
from scorecard.services import hierarchy_service


def _print_tree(tree, status_column):
    for pillar in tree["pillars"]:
        print(f"■ {pillar['name']}  [{pillar['id']}]")
        for category in pillar["categories"]:
            print(f"  ├─ {category['name']}  [{category['id']}]")
            for goal in category["goals"]:
                print(f"  │   ├─ {goal['text'][:70]}")
                for program in goal["programs"]:
                    status = program.get(status_column) or "-" if status_column else ""
                    print(f"  │   │   └─ {program['text'][:60]}  {status}")


def main():
    parser = argparse.ArgumentParser(description="Show the scorecard hierarchy")
    parser.add_argument("--quarter", help="Quarter filter, e.g. q3_2025")
    parser.add_argument("--functional", action="store_true", help="Show the functional tree")
    parser.add_argument("--function", help="Function filter for the functional tree")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        quarter = (
            normalize_quarter(args.quarter, app.config["SCORECARD_DEFAULT_YEAR"])
            if args.quarter else None
        )
        if args.functional:
            tree = hierarchy_service.get_functional_scorecard_data(args.function, quarter)
        else:
            tree = hierarchy_service.get_scorecard_data(quarter)
    status_column = f"{quarter}_status" if quarter else None
    _print_tree(tree, status_column)


if __name__ == "__main__":
    main()
