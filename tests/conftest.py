"""
Shared pytest fixtures for the Strategic Scorecard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - hierarchy: Seeded ORD + functional hierarchy
"""

import pytest

from scorecard import create_app
from scorecard.models import db as _db
from scorecard.models.scorecard import (
    Category, FunctionalProgram, StrategicGoal, StrategicPillar, StrategicProgram,
)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def hierarchy():
    """Seed a small ORD tree and functional rows; returns the ids used.

    ORD:
        pillar-001 Growth
            category-001 Revenue
                goal-001 Grow recurring revenue
                    program-001 Launch subscription tier
                    program-002 Partner channel (from Q3-2025)
            category-002 Customers          (no goals)
        pillar-002 Operations
            category-003 Efficiency
                goal-002 Reduce cycle time
                    program-003 Automate invoicing (until Q2-2025)

    Functional:
        functional-001 Growth / Sales / Win enterprise   function=Finance
        functional-002 Growth / Sales / Win enterprise   function=IT
        functional-003 <no pillar/category/goal>         function=IT
    """
    _db.session.add_all([
        StrategicPillar(id="pillar-001", name="Growth"),
        StrategicPillar(id="pillar-002", name="Operations"),
    ])
    _db.session.flush()
    _db.session.add_all([
        Category(id="category-001", name="Revenue", pillar_id="pillar-001", status="on-track"),
        Category(id="category-002", name="Customers", pillar_id="pillar-001"),
        Category(id="category-003", name="Efficiency", pillar_id="pillar-002"),
    ])
    _db.session.flush()
    _db.session.add_all([
        StrategicGoal(id="goal-001", text="Grow recurring revenue",
                      category_id="category-001", pillar_id="pillar-001"),
        StrategicGoal(id="goal-002", text="Reduce cycle time",
                      category_id="category-003", pillar_id="pillar-002"),
    ])
    _db.session.flush()
    _db.session.add_all([
        StrategicProgram(
            id="program-001", text="Launch subscription tier",
            goal_id="goal-001", category_id="category-001", pillar_id="pillar-001",
            q1_2025_objective="Pricing approved", q1_2025_status="on-track",
            ord_lt_sponsors=["Ana Ruiz"], sponsors_leads=["Sam Lee"],
            progress_updates="Pricing model drafted",
        ),
        StrategicProgram(
            id="program-002", text="Partner channel",
            goal_id="goal-001", category_id="category-001", pillar_id="pillar-001",
            start_quarter="Q3-2025",
        ),
        StrategicProgram(
            id="program-003", text="Automate invoicing",
            goal_id="goal-002", category_id="category-003", pillar_id="pillar-002",
            end_quarter="Q2-2025",
        ),
    ])
    _db.session.add_all([
        FunctionalProgram(id="functional-001", text="Finance close automation",
                          pillar="Growth", category="Sales", strategic_goal="Win enterprise",
                          function="Finance", reporting_owners=["Kim Park"]),
        FunctionalProgram(id="functional-002", text="CRM rollout",
                          pillar="Growth", category="Sales", strategic_goal="Win enterprise",
                          function="IT"),
        FunctionalProgram(id="functional-003", text="Laptop refresh", function="IT"),
    ])
    _db.session.commit()
    return {
        "pillars": ["pillar-001", "pillar-002"],
        "categories": ["category-001", "category-002", "category-003"],
        "goals": ["goal-001", "goal-002"],
        "programs": ["program-001", "program-002", "program-003"],
        "functional": ["functional-001", "functional-002", "functional-003"],
    }
