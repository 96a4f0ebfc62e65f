"""
Shared pytest fixtures for the taskboard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - user / team / project / task: Pre-created entities
"""

from datetime import datetime, timedelta, timezone

import pytest

from taskboard import create_app
from taskboard.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


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
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


# ── Convenience fixtures ─────────────────────────────────────────────────


def utc(days=0, hours=0):
    """A tz-aware instant relative to now."""
    return datetime.now(timezone.utc) + timedelta(days=days, hours=hours)


@pytest.fixture()
def user():
    from taskboard.models.auth import User
    u = User(email="ada@example.com", first_name="Ada", last_name="Lovelace")
    u.password = "analytical"
    _db.session.add(u)
    _db.session.commit()
    return u


@pytest.fixture()
def team(user):
    from taskboard.models.team import Team
    t = Team(name="Platform", description="Core platform team")
    t.members.append(user)
    _db.session.add(t)
    _db.session.commit()
    return t


@pytest.fixture()
def project(team):
    from taskboard.models.project import Project
    p = Project(team_id=team.id, name="Roadmap", start_date=utc(days=-10), end_date=utc(days=30))
    _db.session.add(p)
    _db.session.commit()
    return p


@pytest.fixture()
def task(project, user):
    from taskboard.models.task import Task
    t = Task(
        project_id=project.id,
        assignee_id=user.id,
        title="Write release notes",
        due_date=utc(days=7),
        meta={"labels": ["docs"]},
    )
    _db.session.add(t)
    _db.session.commit()
    return t
