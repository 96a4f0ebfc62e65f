"""
Task domain model.

A task belongs to a project and may be assigned to a user. Removing the
assignee leaves the task in place, unassigned (FK ``ON DELETE SET NULL``;
``User.soft_delete`` clears the reference the same way).

The due date must lie in the future whenever the task is written, so it is
re-checked on every insert and on every update that changes a business
field.
"""

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import (
    raise_if_errors,
    require_choice,
    require_future,
    require_mapping,
    require_text,
)

# ── Constants ────────────────────────────────────────────────────────────────

TASK_STATUSES = ("todo", "in_progress", "review", "completed")
TASK_PRIORITIES = ("low", "medium", "high")


class Task(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "tasks"
    __soft_delete_cascade__ = ("time_entries", "comments")

    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
    )
    assignee_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"),
        nullable=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(
        db.String(20), nullable=False, default="todo",
        comment="todo | in_progress | review | completed",
    )
    priority = db.Column(db.String(10), nullable=False, default="medium", comment="low | medium | high")
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    # "metadata" is reserved on declarative classes.
    meta = db.Column("metadata", db.JSON, default=dict)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('todo','in_progress','review','completed')",
            name="ck_tasks_status",
        ),
        db.CheckConstraint("priority IN ('low','medium','high')", name="ck_tasks_priority"),
        db.Index("ix_tasks_status", "status"),
        db.Index("ix_tasks_priority", "priority"),
        db.Index("ix_tasks_due_date", "due_date"),
        db.Index("ix_tasks_project_id", "project_id"),
        db.Index("ix_tasks_assignee_id", "assignee_id"),
    )

    # Relationships
    project = db.relationship("Project", back_populates="tasks")
    assignee = db.relationship("User", back_populates="assigned_tasks", foreign_keys=[assignee_id])
    time_entries = db.relationship(
        "TimeEntry", back_populates="task", cascade="all, delete-orphan", passive_deletes=True,
    )
    comments = db.relationship(
        "Comment", back_populates="task", cascade="all, delete-orphan", passive_deletes=True,
    )

    def validate(self):
        errors = {}
        require_text(errors, "title", self.title)
        require_choice(errors, "status", self.status, TASK_STATUSES)
        require_choice(errors, "priority", self.priority, TASK_PRIORITIES)
        require_future(errors, "due_date", self.due_date)
        require_mapping(errors, "meta", self.meta)
        raise_if_errors("Task", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "assignee_id": self.assignee_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "due_date": iso(self.due_date),
            "metadata": self.meta or {},
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "deleted_at": iso(self.deleted_at),
        }

    def __repr__(self):
        return f"<Task {self.id}: {(self.title or '')[:40]}>"
