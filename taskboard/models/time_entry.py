"""Time tracking: one record per work interval a user logs against a task."""

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import (
    raise_if_errors,
    require_after,
    require_min,
    require_present,
)


class TimeEntry(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "time_entries"

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
    )
    task_id = db.Column(
        db.Integer,
        db.ForeignKey("tasks.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
    )
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)  # NULL while the timer runs
    duration = db.Column(db.Integer, default=0, comment="Seconds")
    description = db.Column(db.Text)
    is_manual_entry = db.Column(db.Boolean, default=False)

    __table_args__ = (
        db.CheckConstraint("duration >= 0", name="ck_time_entries_duration"),
        db.CheckConstraint(
            "end_time IS NULL OR end_time > start_time",
            name="ck_time_entries_end_after_start",
        ),
        db.Index("ix_time_entries_start_time", "start_time"),
        db.Index("ix_time_entries_user_id", "user_id"),
        db.Index("ix_time_entries_task_id", "task_id"),
    )

    # Relationships
    user = db.relationship("User", back_populates="time_entries")
    task = db.relationship("Task", back_populates="time_entries")

    @property
    def is_running(self):
        return self.end_time is None

    def validate(self):
        errors = {}
        require_present(errors, "start_time", self.start_time)
        require_after(errors, "end_time", self.end_time, "start_time", self.start_time)
        require_min(errors, "duration", self.duration, 0)
        raise_if_errors("TimeEntry", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "start_time": iso(self.start_time),
            "end_time": iso(self.end_time),
            "duration": self.duration,
            "description": self.description,
            "is_manual_entry": self.is_manual_entry,
            "created_at": iso(self.created_at),
            "deleted_at": iso(self.deleted_at),
        }
