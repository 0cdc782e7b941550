#!/usr/bin/env python3
"""
Strategic Scorecard: planning workbook import.

Replaces pillars, categories, goals and programs with the contents of the
four planning workbooks.  Alignments, functional programs and the progress
history are kept.

Usage:
    python scripts/import_xlsx.py                    # IMPORT_DATA_DIR (default: data/)
    python scripts/import_xlsx.py --data-dir ~/plan  # explicit directory
    python scripts/import_xlsx.py --year 2026        # year for "Q1 Objective" headers
    flask --app wsgi import-xlsx --data-dir data/    # same, via the Flask CLI
"""

import argparse
import sys

sys.path.insert(0, ".")

from scorecard import create_app
from scorecard.services.import_service import DEFAULT_FILES, WorkbookImportError, import_workbooks


def main():
    parser = argparse.ArgumentParser(description="Import planning workbooks into the scorecard DB")
    parser.add_argument("--data-dir", help="Directory holding the workbooks")
    parser.add_argument("--year", type=int, help="Year applied to quarter headers without one")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        data_dir = args.data_dir or app.config["IMPORT_DATA_DIR"]
        print(f"Importing from {data_dir}")
        for table, filename in DEFAULT_FILES.items():
            print(f"    {table:.<14} {filename}")
        try:
            counts = import_workbooks(data_dir, default_year=args.year)
        except WorkbookImportError as exc:
            print(f"Import failed: {exc}", file=sys.stderr)
            return 1

    print()
    for table, c in counts.items():
        print(f"    {table:.<14} inserted {c['inserted']:>5}   skipped {c['skipped']:>4}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
