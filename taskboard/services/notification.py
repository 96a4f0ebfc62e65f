"""
Notification Service.

Creating, broadcasting and querying per-user in-app notifications.
"""

import logging
from datetime import datetime, timezone

from taskboard.core.exceptions import NotFoundError
from taskboard.models import db
from taskboard.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def create(*, user_id, title, message, type="system", related_id=None, payload=None):
        """
        Create a single notification record.

        Returns:
            The created Notification instance (already committed).
        """
        notif = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            related_id=related_id,
            payload=payload or {},
        )
        db.session.add(notif)
        db.session.commit()
        logger.info("Notification created id=%s user_id=%s type=%s", notif.id, user_id, type)
        return notif

    @staticmethod
    def broadcast(*, user_ids, title, message, type="system", related_id=None, payload=None):
        """
        Send the same notification to several users.

        Returns:
            List of created Notification instances.
        """
        notifications = []
        for uid in user_ids:
            notif = Notification(
                user_id=uid,
                title=title,
                message=message,
                type=type,
                related_id=related_id,
                payload=dict(payload or {}),
            )
            db.session.add(notif)
            notifications.append(notif)
        db.session.commit()
        logger.info("Notification broadcast to %d users type=%s", len(notifications), type)
        return notifications

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(user_id, unread_only=False, type=None, limit=50, offset=0):
        """
        Retrieve notifications for a user, newest first.

        Returns:
            (items, total) where total ignores limit/offset.
        """
        q = Notification.query.filter_by(user_id=user_id)
        if unread_only:
            q = q.filter_by(is_read=False)
        if type:
            q = q.filter_by(type=type)
        total = q.count()
        items = (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset).limit(limit).all()
        )
        return items, total

    @staticmethod
    def unread_count(user_id):
        """Return count of unread notifications."""
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id):
        """Mark a single notification as read."""
        notif = db.session.get(Notification, notification_id)
        if notif is None:
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        notif.mark_read()
        db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(user_id):
        """Mark all notifications of a user as read. Returns the number updated."""
        now = datetime.now(timezone.utc)
        count = Notification.query.filter_by(user_id=user_id, is_read=False).update(
            {"is_read": True, "updated_at": now}, synchronize_session="fetch",
        )
        db.session.commit()
        logger.info("Marked %d notifications read user_id=%s", count, user_id)
        return count
