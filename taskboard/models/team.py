"""
Team domain model.

Models:
    - Team: group of users owning projects
    - user_teams: membership association table (no model class)
"""

from datetime import datetime, timezone

from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import raise_if_errors, require_text


def _now():
    return datetime.now(timezone.utc)


# Removing either side removes the membership row.
user_teams = db.Table(
    "user_teams",
    db.Column(
        "user_id", db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "team_id", db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    ),
    db.Column("created_at", db.DateTime(timezone=True), nullable=False, default=_now),
    db.Column("updated_at", db.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now),
    db.Index("ix_user_teams_team_id", "team_id"),
)


class Team(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "teams"
    __soft_delete_cascade__ = ("projects",)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)

    # Relationships
    members = db.relationship(
        "User",
        secondary=user_teams,
        primaryjoin="Team.id == user_teams.c.team_id",
        secondaryjoin="and_(User.id == user_teams.c.user_id, User.deleted_at.is_(None))",
        back_populates="teams",
        passive_deletes=True,
    )
    projects = db.relationship(
        "Project", back_populates="team", cascade="all, delete-orphan", passive_deletes=True,
    )
    user_roles = db.relationship(
        "UserRole",
        primaryjoin="and_(Team.id == foreign(UserRole.resource_id), UserRole.scope == 'team')",
        viewonly=True,
    )

    def validate(self):
        errors = {}
        require_text(errors, "name", self.name)
        raise_if_errors("Team", errors)

    def to_dict(self, include_members=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "deleted_at": iso(self.deleted_at),
        }
        if include_members:
            d["members"] = [u.to_dict() for u in self.members]
        return d
