"""
Auth Models: users, roles, permissions and the two RBAC junction tables.

Only storage lives here. Evaluating permissions against a request is the
hosting application's job.

UserRole carries a scoped, polymorphic reference: ``scope`` says whether
``resource_id`` points at a Team, a Project, or nothing (global). No foreign
key backs ``resource_id``; keeping it consistent is up to the caller.
``ScopeRef`` is the typed view over that column pair.
"""

from dataclasses import dataclass

import sqlalchemy as sa

from taskboard.core.exceptions import ValidationError
from taskboard.models import db
from taskboard.models.base import TimestampedModel, iso
from taskboard.models.soft_delete import SoftDeleteMixin
from taskboard.models.validators import (
    raise_if_errors,
    require_choice,
    require_email,
    require_mapping,
    require_min,
    require_present,
    require_text,
)
from taskboard.utils.crypto import hash_password, verify_password

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100

SCOPE_GLOBAL = "global"
SCOPE_TEAM = "team"
SCOPE_PROJECT = "project"
ROLE_SCOPES = (SCOPE_GLOBAL, SCOPE_TEAM, SCOPE_PROJECT)

_ACTIVE_ONLY = sa.text("deleted_at IS NULL")


def _active_unique_index(name, column):
    """Unique index that ignores soft-deleted rows."""
    return db.Index(
        name, column, unique=True,
        sqlite_where=_ACTIVE_ONLY, postgresql_where=_ACTIVE_ONLY,
    )


# ═══════════════════════════════════════════════════════════════
# Scope reference
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class ScopeRef:
    """Where a role assignment applies: globally, in one team or in one project."""

    kind: str = SCOPE_GLOBAL
    resource_id: int | None = None

    def __post_init__(self):
        if self.kind not in ROLE_SCOPES:
            raise ValidationError(
                f"Unknown role scope {self.kind!r}",
                details={"scope": f"must be one of: {', '.join(ROLE_SCOPES)}"},
            )
        if self.kind == SCOPE_GLOBAL and self.resource_id is not None:
            raise ValidationError(
                "A global role assignment cannot reference a resource",
                details={"resource_id": "must be empty for global scope"},
            )
        if self.kind != SCOPE_GLOBAL and self.resource_id is None:
            raise ValidationError(
                f"A {self.kind} role assignment needs a resource id",
                details={"resource_id": f"is required for {self.kind} scope"},
            )

    @classmethod
    def global_(cls):
        return cls()

    @classmethod
    def team(cls, team_id: int):
        return cls(SCOPE_TEAM, team_id)

    @classmethod
    def project(cls, project_id: int):
        return cls(SCOPE_PROJECT, project_id)

    @property
    def is_global(self) -> bool:
        return self.kind == SCOPE_GLOBAL

    def to_dict(self):
        return {"scope": self.kind, "resource_id": self.resource_id}


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "users"
    __soft_delete_cascade__ = ("time_entries", "comments")

    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        _active_unique_index("uq_users_email_active", "email"),
        db.Index("ix_users_email", "email"),
        db.Index("ix_users_is_active", "is_active"),
    )

    # Relationships
    teams = db.relationship(
        "Team",
        secondary="user_teams",
        primaryjoin="User.id == user_teams.c.user_id",
        secondaryjoin="and_(Team.id == user_teams.c.team_id, Team.deleted_at.is_(None))",
        back_populates="members",
        passive_deletes=True,
    )
    # ON DELETE SET NULL clears the assignment; the ORM never touches the tasks.
    assigned_tasks = db.relationship(
        "Task", back_populates="assignee", foreign_keys="Task.assignee_id", passive_deletes="all",
    )
    time_entries = db.relationship(
        "TimeEntry", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    notifications = db.relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    comments = db.relationship(
        "Comment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    user_roles = db.relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )
    roles = db.relationship(
        "Role",
        secondary="user_roles",
        primaryjoin="User.id == UserRole.user_id",
        secondaryjoin="and_(Role.id == UserRole.role_id, Role.deleted_at.is_(None))",
        viewonly=True,
    )

    @property
    def password(self):
        raise AttributeError("password is write-only; use check_password()")

    @password.setter
    def password(self, plain_password):
        if plain_password is not None and not isinstance(plain_password, str):
            raise ValidationError("Password must be a string", details={"password": "must be a string"})
        if plain_password is None or not plain_password.strip():
            raise ValidationError("Password is required", details={"password": "must not be empty"})
        if not PASSWORD_MIN_LENGTH <= len(plain_password) <= PASSWORD_MAX_LENGTH:
            raise ValidationError(
                f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters",
                details={
                    "password": f"length must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH}",
                },
            )
        self.password_hash = hash_password(plain_password)

    def check_password(self, plain_password) -> bool:
        return verify_password(plain_password, self.password_hash)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def soft_delete(self, stamp=None):
        """Soft-delete the user; tasks assigned to them survive unassigned."""
        from taskboard.models.task import Task

        if self.id is not None:
            Task.query.filter(Task.assignee_id == self.id).update(
                {Task.assignee_id: None}, synchronize_session="fetch",
            )
        return super().soft_delete(stamp)

    def validate(self):
        errors = {}
        require_email(errors, "email", self.email)
        require_present(errors, "password", self.password_hash)
        require_text(errors, "first_name", self.first_name)
        require_text(errors, "last_name", self.last_name)
        raise_if_errors("User", errors)

    def to_dict(self, include_roles=False):
        d = {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "is_active": self.is_active,
            "last_login": iso(self.last_login),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "deleted_at": iso(self.deleted_at),
        }
        if include_roles:
            d["roles"] = [ur.to_dict() for ur in self.user_roles]
        return d


# ═══════════════════════════════════════════════════════════════
# 2. ROLES
# ═══════════════════════════════════════════════════════════════
class Role(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "roles"

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    is_default = db.Column(db.Boolean, nullable=False, default=False)  # granted to new users
    level = db.Column(db.Integer, nullable=False, default=0)  # higher = broader

    __table_args__ = (
        _active_unique_index("uq_roles_name_active", "name"),
        db.CheckConstraint("level >= 0", name="ck_roles_level"),
    )

    # Relationships
    role_permissions = db.relationship(
        "RolePermission", back_populates="role", cascade="all, delete-orphan", passive_deletes=True,
    )
    user_roles = db.relationship(
        "UserRole", back_populates="role", cascade="all, delete-orphan", passive_deletes=True,
    )
    permissions = db.relationship(
        "Permission",
        secondary="role_permissions",
        primaryjoin="Role.id == RolePermission.role_id",
        secondaryjoin="and_(Permission.id == RolePermission.permission_id, Permission.deleted_at.is_(None))",
        viewonly=True,
    )
    users = db.relationship(
        "User",
        secondary="user_roles",
        primaryjoin="Role.id == UserRole.role_id",
        secondaryjoin="and_(User.id == UserRole.user_id, User.deleted_at.is_(None))",
        viewonly=True,
    )

    def validate(self):
        errors = {}
        require_text(errors, "name", self.name)
        require_present(errors, "level", self.level)
        require_min(errors, "level", self.level, 0)
        raise_if_errors("Role", errors)

    def to_dict(self, include_permissions=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_default": self.is_default,
            "level": self.level,
            "deleted_at": iso(self.deleted_at),
        }
        if include_permissions:
            d["permissions"] = [rp.to_dict() for rp in self.role_permissions]
        return d


# ═══════════════════════════════════════════════════════════════
# 3. PERMISSIONS
# ═══════════════════════════════════════════════════════════════
class Permission(SoftDeleteMixin, TimestampedModel):
    __tablename__ = "permissions"

    name = db.Column(db.String(100), nullable=False)  # e.g. "task:delete"
    description = db.Column(db.Text)
    resource = db.Column(db.String(100), nullable=False)  # e.g. "task"
    action = db.Column(db.String(100), nullable=False)  # e.g. "delete"

    __table_args__ = (
        _active_unique_index("uq_permissions_name_active", "name"),
    )

    # Relationships
    role_permissions = db.relationship(
        "RolePermission", back_populates="permission", cascade="all, delete-orphan", passive_deletes=True,
    )
    roles = db.relationship(
        "Role",
        secondary="role_permissions",
        primaryjoin="Permission.id == RolePermission.permission_id",
        secondaryjoin="and_(Role.id == RolePermission.role_id, Role.deleted_at.is_(None))",
        viewonly=True,
    )

    def validate(self):
        errors = {}
        require_text(errors, "name", self.name)
        require_text(errors, "resource", self.resource)
        require_text(errors, "action", self.action)
        raise_if_errors("Permission", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "resource": self.resource,
            "action": self.action,
        }


# ═══════════════════════════════════════════════════════════════
# 4. ROLE_PERMISSIONS (Junction table)
# ═══════════════════════════════════════════════════════════════
class RolePermission(TimestampedModel):
    __tablename__ = "role_permissions"

    role_id = db.Column(
        db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False,
    )
    permission_id = db.Column(
        db.Integer, db.ForeignKey("permissions.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False,
    )
    conditions = db.Column(db.JSON, default=dict)  # e.g. {"own": true}: own resources only

    __table_args__ = (
        db.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
        db.Index("ix_role_permissions_role_id", "role_id"),
        db.Index("ix_role_permissions_permission_id", "permission_id"),
    )

    # Relationships
    role = db.relationship("Role", back_populates="role_permissions")
    permission = db.relationship("Permission", back_populates="role_permissions")

    def validate(self):
        errors = {}
        require_mapping(errors, "conditions", self.conditions)
        raise_if_errors("RolePermission", errors)

    def to_dict(self):
        d = self.permission.to_dict() if self.permission else {"id": self.permission_id}
        d["conditions"] = self.conditions or {}
        return d


# ═══════════════════════════════════════════════════════════════
# 5. USER_ROLES (Junction table)
# ═══════════════════════════════════════════════════════════════
class UserRole(TimestampedModel):
    __tablename__ = "user_roles"

    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False,
    )
    role_id = db.Column(
        db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE", onupdate="CASCADE"), nullable=False,
    )
    scope = db.Column(db.String(20), nullable=False, default=SCOPE_GLOBAL, comment="global | team | project")
    # Team or project id when scope != global. Deliberately not a foreign key.
    resource_id = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("user_id", "role_id", "scope", "resource_id", name="uq_user_role_scope"),
        db.CheckConstraint("scope IN ('global','team','project')", name="ck_user_roles_scope"),
        db.CheckConstraint(
            "(scope = 'global' AND resource_id IS NULL) OR (scope <> 'global' AND resource_id IS NOT NULL)",
            name="ck_user_roles_resource",
        ),
        db.Index("ix_user_roles_user_id", "user_id"),
        db.Index("ix_user_roles_role_id", "role_id"),
        db.Index("ix_user_roles_scope_resource", "scope", "resource_id"),
    )

    # Relationships
    user = db.relationship("User", back_populates="user_roles")
    role = db.relationship("Role", back_populates="user_roles")
    team = db.relationship(
        "Team",
        primaryjoin="and_(foreign(UserRole.resource_id) == Team.id, UserRole.scope == 'team')",
        viewonly=True,
    )
    project = db.relationship(
        "Project",
        primaryjoin="and_(foreign(UserRole.resource_id) == Project.id, UserRole.scope == 'project')",
        viewonly=True,
    )

    @property
    def scope_ref(self) -> ScopeRef:
        return ScopeRef(self.scope or SCOPE_GLOBAL, self.resource_id)

    @scope_ref.setter
    def scope_ref(self, ref: ScopeRef):
        self.scope = ref.kind
        self.resource_id = ref.resource_id

    @property
    def resource(self):
        """The Team or Project this assignment is scoped to, if it still exists."""
        if self.scope == SCOPE_TEAM:
            return self.team
        if self.scope == SCOPE_PROJECT:
            return self.project
        return None

    def validate(self):
        errors = {}
        require_choice(errors, "scope", self.scope, ROLE_SCOPES)
        if self.scope == SCOPE_GLOBAL and self.resource_id is not None:
            errors["resource_id"] = "must be empty for global scope"
        elif self.scope in (SCOPE_TEAM, SCOPE_PROJECT) and self.resource_id is None:
            errors["resource_id"] = f"is required for {self.scope} scope"
        raise_if_errors("UserRole", errors)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role_id": self.role_id,
            "role": self.role.name if self.role else None,
            "scope": self.scope,
            "resource_id": self.resource_id,
        }
