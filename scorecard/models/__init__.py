"""
Strategic Scorecard Service
Database handle and model registry.

``db`` is created unbound here and attached to an application by
``create_app`` via ``db.init_app(app)``; the engine and its connection
pool live and die with that application.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
