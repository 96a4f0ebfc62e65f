"""Notification service tests."""

import pytest

from taskboard.core.exceptions import NotFoundError
from taskboard.models import db
from taskboard.models.auth import User
from taskboard.models.notification import Notification
from taskboard.services.notification import NotificationService


@pytest.fixture()
def other_user():
    u = User(email="alan@example.com", first_name="Alan", last_name="Turing")
    u.password = "enigma-machine"
    db.session.add(u)
    db.session.commit()
    return u


class TestNotificationService:
    def test_create(self, user, task):
        n = NotificationService.create(
            user_id=user.id, title="Task assigned", message=task.title,
            type="task", related_id=task.id, payload={"priority": "high"},
        )
        assert n.id is not None
        assert n.is_read is False
        assert n.to_dict()["payload"] == {"priority": "high"}
        assert user.notifications == [n]

    def test_broadcast(self, user, other_user):
        items = NotificationService.broadcast(
            user_ids=[user.id, other_user.id], title="Maintenance", message="Tonight 22:00",
        )
        assert len(items) == 2
        assert {n.user_id for n in items} == {user.id, other_user.id}
        assert all(n.type == "system" for n in items)

    def test_list_newest_first(self, user):
        for i in range(3):
            NotificationService.create(user_id=user.id, title=f"N{i}", message="m")
        items, total = NotificationService.list_for_user(user.id)
        assert total == 3
        assert [n.title for n in items] == ["N2", "N1", "N0"]

    def test_list_filters_and_paging(self, user, other_user):
        NotificationService.create(user_id=user.id, title="A", message="m", type="task")
        NotificationService.create(user_id=user.id, title="B", message="m", type="project")
        NotificationService.create(user_id=other_user.id, title="C", message="m")

        items, total = NotificationService.list_for_user(user.id, type="task")
        assert total == 1 and items[0].title == "A"

        items, total = NotificationService.list_for_user(user.id, limit=1)
        assert total == 2 and len(items) == 1

    def test_mark_read_and_counts(self, user):
        first = NotificationService.create(user_id=user.id, title="A", message="m")
        NotificationService.create(user_id=user.id, title="B", message="m")
        assert NotificationService.unread_count(user.id) == 2

        NotificationService.mark_read(first.id)
        assert NotificationService.unread_count(user.id) == 1
        items, total = NotificationService.list_for_user(user.id, unread_only=True)
        assert total == 1 and items[0].title == "B"

    def test_mark_all_read(self, user, other_user):
        NotificationService.create(user_id=user.id, title="A", message="m")
        NotificationService.create(user_id=user.id, title="B", message="m")
        NotificationService.create(user_id=other_user.id, title="C", message="m")

        assert NotificationService.mark_all_read(user.id) == 2
        assert NotificationService.unread_count(user.id) == 0
        assert NotificationService.unread_count(other_user.id) == 1

    def test_mark_read_missing(self):
        with pytest.raises(NotFoundError):
            NotificationService.mark_read(999)

    def test_notifications_are_hard_deleted(self, user):
        n = NotificationService.create(user_id=user.id, title="A", message="m")
        assert not hasattr(n, "deleted_at")
        db.session.delete(n)
        db.session.commit()
        assert Notification.query.count() == 0
