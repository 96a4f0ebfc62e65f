"""
Soft delete tests.

Tests cover:
  - deleted_at stamping, query_active / query_deleted
  - Cascade Team -> Project -> Task -> TimeEntry / Comment with a shared stamp
  - restore() brings back exactly the rows deleted together
  - User soft delete unassigns tasks
  - Unique e-mail / role name among active rows only
"""

from datetime import datetime, timedelta, timezone

import pytest
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from taskboard.models import db
from taskboard.models.auth import Role, User
from taskboard.models.comment import Comment
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.team import Team, user_teams
from taskboard.models.time_entry import TimeEntry


def _make_user(email, first_name="Grace"):
    u = User(email=email, first_name=first_name, last_name="Hopper")
    u.password = "compiler"
    db.session.add(u)
    return u


@pytest.fixture()
def tree(team, project, task, user):
    """A full ownership chain with one time entry and one comment."""
    entry = TimeEntry(
        user_id=user.id, task_id=task.id,
        start_time=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    comment = Comment(user_id=user.id, task_id=task.id, content="Looks good")
    db.session.add_all([entry, comment])
    db.session.commit()
    return {"team": team, "project": project, "task": task, "entry": entry, "comment": comment}


class TestSoftDeleteBasics:
    def test_soft_delete_stamps_deleted_at(self, team):
        assert not team.is_deleted
        stamp = team.soft_delete()
        db.session.commit()
        assert team.is_deleted
        assert team.deleted_at is not None
        assert stamp is not None

    def test_query_active_excludes_deleted(self, team):
        other = Team(name="Other")
        db.session.add(other)
        db.session.commit()

        team.soft_delete()
        db.session.commit()

        assert Team.query_active().all() == [other]
        assert Team.query_deleted().all() == [team]
        assert Team.query.count() == 2

    def test_active_filter_in_hand_written_query(self, team):
        team.soft_delete()
        db.session.commit()
        assert Team.query.filter(Team.active_filter()).count() == 0

    def test_restore(self, team):
        team.soft_delete()
        db.session.commit()
        team.restore()
        db.session.commit()
        assert not team.is_deleted
        assert Team.query_active().count() == 1

    def test_restore_active_record_is_noop(self, team):
        team.restore()
        assert team.deleted_at is None


class TestSoftDeleteCascade:
    def test_team_cascades_down_the_tree(self, tree):
        tree["team"].soft_delete()
        db.session.commit()

        assert Project.query_active().count() == 0
        assert Task.query_active().count() == 0
        assert TimeEntry.query_active().count() == 0
        assert Comment.query_active().count() == 0
        # nothing physically removed
        assert Project.query.count() == 1
        assert Task.query.count() == 1

    def test_cascade_shares_one_stamp(self, tree):
        stamp = tree["team"].soft_delete()
        db.session.commit()
        stamps = {
            tree["team"].deleted_at,
            tree["project"].deleted_at,
            tree["task"].deleted_at,
            tree["entry"].deleted_at,
            tree["comment"].deleted_at,
        }
        assert len(stamps) == 1
        assert stamp is not None

    def test_restore_cascades(self, tree):
        tree["team"].soft_delete()
        db.session.commit()
        tree["team"].restore()
        db.session.commit()

        assert Project.query_active().count() == 1
        assert Task.query_active().count() == 1
        assert TimeEntry.query_active().count() == 1
        assert Comment.query_active().count() == 1

    def test_restore_skips_rows_deleted_earlier(self, tree):
        earlier = datetime.now(timezone.utc) - timedelta(days=1)
        tree["comment"].soft_delete(earlier)
        db.session.commit()

        tree["project"].soft_delete()
        db.session.commit()
        tree["project"].restore()
        db.session.commit()

        assert Task.query_active().count() == 1
        assert Comment.query_active().count() == 0
        assert tree["comment"].is_deleted

    def test_project_delete_leaves_team(self, tree):
        tree["project"].soft_delete()
        db.session.commit()
        assert Team.query_active().count() == 1
        assert Task.query_active().count() == 0


class TestUserSoftDelete:
    def test_tasks_are_unassigned_not_deleted(self, tree, user):
        user.soft_delete()
        db.session.commit()

        task = db.session.get(Task, tree["task"].id)
        assert task.assignee_id is None
        assert not task.is_deleted

    def test_owned_rows_cascade(self, tree, user):
        user.soft_delete()
        db.session.commit()
        assert TimeEntry.query_active().count() == 0
        assert Comment.query_active().count() == 0

    def test_team_membership_kept(self, tree, user):
        user.soft_delete()
        db.session.commit()
        rows = db.session.execute(sa.select(sa.func.count()).select_from(user_teams)).scalar()
        assert rows == 1
        assert tree["team"].members == []
        assert tree["team"].to_dict(include_members=True)["members"] == []

        user.restore()
        db.session.commit()
        assert tree["team"].members == [user]

    def test_deleted_team_hidden_from_user(self, tree, user):
        tree["team"].soft_delete()
        db.session.commit()
        assert user.teams == []

        tree["team"].restore()
        db.session.commit()
        assert user.teams == [tree["team"]]


class TestUniqueAmongActive:
    def test_duplicate_email_rejected(self, user):
        _make_user(user.email)
        with pytest.raises(IntegrityError):
            db.session.commit()
        db.session.rollback()

    def test_email_is_case_sensitive(self, user):
        _make_user(user.email.upper())
        db.session.commit()
        assert User.query_active().count() == 2

    def test_email_reusable_after_soft_delete(self, user):
        email = user.email
        user.soft_delete()
        db.session.commit()

        replacement = _make_user(email, first_name="Second")
        db.session.commit()
        assert replacement.id != user.id
        assert User.query.filter_by(email=email).count() == 2

    def test_role_name_reusable_after_soft_delete(self):
        old = Role(name="auditor")
        db.session.add(old)
        db.session.commit()
        old.soft_delete()
        db.session.commit()

        db.session.add(Role(name="auditor"))
        db.session.commit()
        assert Role.query_active().filter_by(name="auditor").count() == 1
