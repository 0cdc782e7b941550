"""
Strategic Scorecard Service

    from scorecard import create_app
    app = create_app()            # APP_ENV, falling back to "development"
    app = create_app("testing")

``create_app`` wires configuration, logging, extensions, request guards,
blueprints, CLI commands and the JSON error pages for ``/api/`` routes.
"""

import logging
import os

import click
from flask import Flask, abort, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as sa_engine, event as sa_event

from scorecard.config import config
from scorecard.middleware.logging_config import configure_logging
from scorecard.middleware.rate_limiter import init_rate_limits
from scorecard.middleware.timing import init_request_timing
from scorecard.models import db

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
ACCEPTED_BODY_TYPES = ("json", "multipart/form-data")

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("REDIS_URL") or "memory://",
)


@sa_event.listens_for(sa_engine.Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, _record):
    # SQLite ships with FK checks off; dependency checks rely on them
    if "sqlite" not in type(dbapi_conn).__module__:
        return
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def create_app(config_name=None):
    """Build a configured application.

    Args:
        config_name: "development", "testing" or "production".  ``None``
            reads ``APP_ENV``.
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    configure_logging(app)
    _init_extensions(app)
    init_request_timing(app)
    _register_request_guards(app)
    _register_blueprints(app)
    init_rate_limits(app, limiter)
    _register_cli(app)
    _register_error_pages(app)

    logger.debug("Scorecard app created (config=%s)", config_name)
    return app


def _init_extensions(app):
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    origins = [o.strip() for o in (app.config.get("CORS_ORIGINS") or "*").split(",") if o.strip()]
    if not origins or origins == ["*"]:
        CORS(app, resources={r"/api/*": {"origins": "*"}})
    else:
        CORS(app, resources={r"/api/*": {"origins": origins}})

    # models must be imported before Alembic autogenerate inspects metadata
    from scorecard.models import alignment, audit, scorecard  # noqa: F401


def _register_request_guards(app):
    @app.before_request
    def _check_body():
        limit = app.config.get("MAX_CONTENT_LENGTH")
        if limit and (request.content_length or 0) > limit:
            abort(413, description="Request body too large")
        if request.method not in BODY_METHODS or not request.path.startswith("/api/"):
            return
        content_type = request.content_type or ""
        if request.data and not any(t in content_type for t in ACCEPTED_BODY_TYPES):
            abort(415, description="Content-Type must be application/json")


def _register_blueprints(app):
    from scorecard.blueprints.admin_bp import admin_bp
    from scorecard.blueprints.ai_bp import ai_bp
    from scorecard.blueprints.alignment_bp import alignment_bp
    from scorecard.blueprints.content_bp import content_bp
    from scorecard.blueprints.health_bp import health_bp
    from scorecard.blueprints.scorecard_bp import scorecard_bp

    for bp in (scorecard_bp, admin_bp, alignment_bp, ai_bp, content_bp, health_bp):
        app.register_blueprint(bp)


def _register_cli(app):
    @app.cli.command("import-xlsx")
    @click.option("--data-dir", default=None, help="Directory holding the planning workbooks.")
    def import_xlsx_cmd(data_dir):
        """Replace the ORD hierarchy with the planning workbooks."""
        from scorecard.services.import_service import WorkbookImportError, import_workbooks

        try:
            counts = import_workbooks(data_dir or app.config["IMPORT_DATA_DIR"])
        except WorkbookImportError as exc:
            raise click.ClickException(str(exc)) from exc
        for table, c in counts.items():
            click.echo(f"{table:<12} inserted={c['inserted']:<5} skipped={c['skipped']}")

    @app.cli.command("init-db")
    def init_db_cmd():
        """Create missing tables without running migrations."""
        db.create_all()
        click.echo("Tables created.")


def _register_error_pages(app):
    @app.errorhandler(404)
    def _not_found(e):
        if not request.path.startswith("/api/"):
            return e
        return jsonify({"error": "Not found", "path": request.path}), 404

    @app.errorhandler(405)
    def _method_not_allowed(_e):
        return jsonify({"error": "Method not allowed", "method": request.method}), 405

    @app.errorhandler(413)
    def _too_large(_e):
        return jsonify({"error": "Request body too large"}), 413

    @app.errorhandler(415)
    def _unsupported(e):
        return jsonify({"error": e.description or "Unsupported media type"}), 415

    @app.errorhandler(429)
    def _rate_limited(e):
        return jsonify({"error": "Rate limit exceeded", "detail": str(e.description)}), 429

    @app.errorhandler(500)
    def _server_error(e):
        logger.error("Unhandled server error: %s", e, exc_info=True)
        return jsonify({"error": "Internal server error"}), 500
