"""
Notification domain model.

Models:
    - Notification: in-app notification record with read tracking

Notifications are hard-deleted; they have no deleted state.
"""

from datetime import datetime, timezone

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.validators import (
    raise_if_errors,
    require_choice,
    require_mapping,
    require_text,
)

# ── Constants ────────────────────────────────────────────────────────────────

NOTIFICATION_TYPES = ("task", "project", "team", "system")


class Notification(TimestampedModel):
    """
    In-app notification entity.

    One record per recipient per event. ``related_id`` points at the task,
    project or team named by ``type``; like UserRole.resource_id it is not
    backed by a foreign key.
    """

    __tablename__ = "notifications"

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
    )
    title = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, comment="task | project | team | system")
    is_read = db.Column(db.Boolean, default=False)
    related_id = db.Column(db.Integer, nullable=True)
    payload = db.Column(db.JSON, default=dict)

    __table_args__ = (
        db.CheckConstraint(
            "type IN ('task','project','team','system')",
            name="ck_notifications_type",
        ),
        db.Index("ix_notifications_is_read", "is_read"),
        db.Index("ix_notifications_type", "type"),
        db.Index("ix_notifications_user_id", "user_id"),
    )

    # Relationships
    user = db.relationship("User", back_populates="notifications")

    def mark_read(self):
        self.is_read = True
        self.updated_at = datetime.now(timezone.utc)

    def validate(self):
        errors = {}
        require_text(errors, "title", self.title)
        require_text(errors, "message", self.message)
        require_choice(errors, "type", self.type, NOTIFICATION_TYPES)
        require_mapping(errors, "payload", self.payload)
        raise_if_errors("Notification", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "is_read": self.is_read,
            "related_id": self.related_id,
            "payload": self.payload or {},
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Notification {self.id}: {(self.title or '')[:40]}>"
