"""Task discussion comments."""

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import raise_if_errors, require_text


class Comment(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "comments"

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
    content = db.Column(db.Text, nullable=False)

    __table_args__ = (
        db.Index("ix_comments_task_id", "task_id"),
        db.Index("ix_comments_user_id", "user_id"),
    )

    # Relationships
    user = db.relationship("User", back_populates="comments")
    task = db.relationship("Task", back_populates="comments")

    def validate(self):
        errors = {}
        require_text(errors, "content", self.content)
        raise_if_errors("Comment", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "content": self.content,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
