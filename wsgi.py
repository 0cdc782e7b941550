"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi import-xlsx --data-dir data/
"""

from scorecard import create_app

app = create_app()
