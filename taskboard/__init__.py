"""
Taskboard: Flask Application Factory.

Usage:
    from taskboard import create_app
    app = create_app()          # uses APP_ENV or "development"
    app = create_app("testing") # explicit config
"""

import logging
import os

import click
from flask import Flask
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from taskboard.config import config
from taskboard.core.logging_config import configure_logging
from taskboard.models import db
from taskboard.models.registry import init_models

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    cfg = config[config_name]
    # ProductionConfig checks its env vars on instantiation
    app.config.from_object(cfg() if config_name == "production" else cfg)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)

    # ── Schema registry ──────────────────────────────────────────────────
    app.extensions["taskboard.models"] = init_models(db)

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if app.config.get("AUTO_CREATE_TABLES"):
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///") and ":memory:" not in uri:
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or ".", exist_ok=True)
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except Exception as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("init-db")
    @click.option("--drop", is_flag=True, help="Drop all tables before creating them.")
    def init_db_cmd(drop):
        """Create all taskboard tables."""
        if drop:
            db.drop_all()
            logger.info("Dropped all tables.")
        db.create_all()
        logger.info("Created %d tables.", len(db.metadata.tables))
        click.echo(f"Database ready: {len(db.metadata.tables)} tables.")

    @app.cli.command("seed-rbac")
    def seed_rbac_cmd():
        """Seed the default roles and permissions."""
        from taskboard.services.rbac_service import seed_default_roles
        counts = seed_default_roles()
        db.session.commit()
        logger.info("Seeded %(roles)s roles, %(permissions)s permissions.", counts)
        click.echo(f"Seeded {counts['roles']} roles, {counts['permissions']} permissions.")

    return app
