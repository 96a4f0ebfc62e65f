"""Project domain model: Team -> Project -> Task hierarchy."""

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import (
    raise_if_errors,
    require_after,
    require_choice,
    require_present,
    require_text,
)

# ── Constants ────────────────────────────────────────────────────────────────

PROJECT_STATUSES = ("active", "completed", "archived")


class Project(SoftDeleteMixin, TimestampedModel):
    """Unit of work owned by a team."""

    __tablename__ = "projects"
    __soft_delete_cascade__ = ("tasks",)

    team_id = db.Column(
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="active", comment="active | completed | archived")
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active','completed','archived')",
            name="ck_projects_status",
        ),
        db.CheckConstraint(
            "end_date IS NULL OR end_date > start_date",
            name="ck_projects_end_after_start",
        ),
        db.Index("ix_projects_status", "status"),
        db.Index("ix_projects_start_date", "start_date"),
        db.Index("ix_projects_team_id", "team_id"),
    )

    # Relationships
    team = db.relationship("Team", back_populates="projects")
    tasks = db.relationship(
        "Task", back_populates="project", cascade="all, delete-orphan", passive_deletes=True,
    )
    user_roles = db.relationship(
        "UserRole",
        primaryjoin="and_(Project.id == foreign(UserRole.resource_id), UserRole.scope == 'project')",
        viewonly=True,
    )

    def validate(self):
        errors = {}
        require_text(errors, "name", self.name)
        require_choice(errors, "status", self.status, PROJECT_STATUSES)
        require_present(errors, "start_date", self.start_date)
        require_after(errors, "end_date", self.end_date, "start_date", self.start_date)
        raise_if_errors("Project", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "team_id": self.team_id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "deleted_at": iso(self.deleted_at),
        }
