"""
RBAC Service: roles, permissions and scoped role assignments.

Only the stored associations are managed here. Deciding whether a user may
perform an action is left to the hosting application; ``get_user_roles``
returns everything it needs for that (roles, scopes, permissions and their
conditions).

Permission names follow ``"<resource>:<action>"``, e.g. ``"task:delete"``.
"""

import logging

from sqlalchemy.exc import IntegrityError

from taskboard.core.exceptions import ConflictError, NotFoundError
from taskboard.models import db
from taskboard.models.auth import (
    Permission,
    Role,
    RolePermission,
    ScopeRef,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# PERMISSIONS: (name, resource, action, description)
# ═══════════════════════════════════════════════════════════════
DEFAULT_PERMISSIONS = [
    # Teams (4)
    ("team:view", "team", "view", "View teams and their members"),
    ("team:create", "team", "create", "Create teams"),
    ("team:edit", "team", "edit", "Edit teams and membership"),
    ("team:delete", "team", "delete", "Delete teams"),
    # Projects (4)
    ("project:view", "project", "view", "View projects"),
    ("project:create", "project", "create", "Create projects"),
    ("project:edit", "project", "edit", "Edit projects"),
    ("project:delete", "project", "delete", "Delete projects"),
    # Tasks (5)
    ("task:view", "task", "view", "View tasks"),
    ("task:create", "task", "create", "Create tasks"),
    ("task:edit", "task", "edit", "Edit tasks"),
    ("task:assign", "task", "assign", "Assign tasks to users"),
    ("task:delete", "task", "delete", "Delete tasks"),
    # Time tracking (3)
    ("time_entry:view", "time_entry", "view", "View time entries"),
    ("time_entry:create", "time_entry", "create", "Log time"),
    ("time_entry:delete", "time_entry", "delete", "Delete time entries"),
    # Comments (3)
    ("comment:view", "comment", "view", "View comments"),
    ("comment:create", "comment", "create", "Write comments"),
    ("comment:delete", "comment", "delete", "Delete comments"),
    # Administration (2)
    ("user:manage", "user", "manage", "Manage user accounts"),
    ("role:manage", "role", "manage", "Manage roles and permissions"),
]


# ═══════════════════════════════════════════════════════════════
# ROLES: default roles with permission assignments
# ═══════════════════════════════════════════════════════════════
DEFAULT_ROLES = {
    "admin": {
        "description": "Full access to every resource",
        "level": 100,
        "is_default": False,
        "permissions": "*",
    },
    "manager": {
        "description": "Runs teams and projects",
        "level": 50,
        "is_default": False,
        "permissions": [
            "team:view", "team:edit",
            "project:*", "task:*", "time_entry:*", "comment:*",
        ],
    },
    "member": {
        "description": "Works on assigned tasks",
        "level": 10,
        "is_default": True,
        "permissions": [
            "*:view",
            "task:create", "task:edit",
            "time_entry:create", "time_entry:delete",
            "comment:create", "comment:delete",
        ],
        # Members may only remove what they created themselves
        "conditions": {
            "time_entry:delete": {"own": True},
            "comment:delete": {"own": True},
        },
    },
    "viewer": {
        "description": "Read-only access",
        "level": 0,
        "is_default": False,
        "permissions": ["*:view"],
    },
}


def _expand_permissions(perm_spec, all_names):
    """Expand wildcards like ``task:*`` or ``*:view`` into permission names."""
    if perm_spec == "*":
        return set(all_names)

    result = set()
    for p in perm_spec:
        resource, _, action = p.partition(":")
        if resource == "*":
            result.update(n for n in all_names if n.endswith(f":{action}"))
        elif action == "*":
            result.update(n for n in all_names if n.startswith(f"{resource}:"))
        elif p in all_names:
            result.add(p)
    return result


def _commit_unique(resource: str, field: str, value) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(resource, field, value) from exc


def _get_active(model, record_id):
    record = model.query_active().filter(model.id == record_id).first()
    if not record:
        raise NotFoundError(resource=model.__name__, resource_id=record_id)
    return record


# ═══════════════════════════════════════════════════════════════
# Roles & permissions
# ═══════════════════════════════════════════════════════════════
def create_role(name: str, description: str = None, level: int = 0, is_default: bool = False) -> Role:
    """Create a role; names are unique among active roles."""
    if Role.query_active().filter_by(name=name).first():
        raise ConflictError("Role", "name", name)
    role = Role(name=name, description=description, level=level, is_default=is_default)
    db.session.add(role)
    _commit_unique("Role", "name", name)
    logger.info("Role created id=%s name=%s", role.id, name, extra={"role_id": role.id})
    return role


def create_permission(name: str, resource: str, action: str, description: str = None) -> Permission:
    """Create a permission; names are unique among active permissions."""
    if Permission.query_active().filter_by(name=name).first():
        raise ConflictError("Permission", "name", name)
    perm = Permission(name=name, resource=resource, action=action, description=description)
    db.session.add(perm)
    _commit_unique("Permission", "name", name)
    logger.info("Permission created id=%s name=%s", perm.id, name)
    return perm


def grant_permission(role_id: int, permission_id: int, conditions: dict = None) -> RolePermission:
    """Link a permission to a role. Granting again replaces the conditions."""
    _get_active(Role, role_id)
    _get_active(Permission, permission_id)

    rp = RolePermission.query.filter_by(role_id=role_id, permission_id=permission_id).first()
    if rp:
        if conditions is not None:
            rp.conditions = conditions
    else:
        rp = RolePermission(role_id=role_id, permission_id=permission_id, conditions=conditions or {})
        db.session.add(rp)
    _commit_unique("RolePermission", "permission_id", permission_id)
    return rp


def revoke_permission(role_id: int, permission_id: int) -> bool:
    """Unlink a permission from a role. Returns False if it was not linked."""
    rp = RolePermission.query.filter_by(role_id=role_id, permission_id=permission_id).first()
    if not rp:
        return False
    db.session.delete(rp)
    db.session.commit()
    return True


# ═══════════════════════════════════════════════════════════════
# Role assignment
# ═══════════════════════════════════════════════════════════════
def _assignment_query(user_id, role_id, scope: ScopeRef):
    return UserRole.query.filter_by(
        user_id=user_id, role_id=role_id, scope=scope.kind, resource_id=scope.resource_id,
    )


def assign_role(user_id: int, role_id: int, scope: ScopeRef = None) -> UserRole:
    """Assign a role to a user in a scope. Assigning twice is a no-op."""
    scope = scope or ScopeRef.global_()
    _get_active(User, user_id)
    _get_active(Role, role_id)

    # NULL resource ids never collide in the unique constraint, so global
    # assignments are de-duplicated here.
    existing = _assignment_query(user_id, role_id, scope).first()
    if existing:
        return existing

    ur = UserRole(user_id=user_id, role_id=role_id)
    ur.scope_ref = scope
    db.session.add(ur)
    _commit_unique("UserRole", "role_id", role_id)
    logger.info(
        "Role assigned user_id=%s role_id=%s scope=%s resource_id=%s",
        user_id, role_id, scope.kind, scope.resource_id,
        extra={"user_id": user_id, "role_id": role_id, "scope": scope.kind, "resource_id": scope.resource_id},
    )
    return ur


def revoke_role(user_id: int, role_id: int, scope: ScopeRef = None) -> bool:
    """Remove a role assignment. Returns False if there was none."""
    scope = scope or ScopeRef.global_()
    ur = _assignment_query(user_id, role_id, scope).first()
    if not ur:
        return False
    db.session.delete(ur)
    db.session.commit()
    logger.info("Role revoked user_id=%s role_id=%s scope=%s", user_id, role_id, scope.kind)
    return True


def assign_default_roles(user: User) -> list[UserRole]:
    """Give ``user`` every active default role globally. Does not commit."""
    assigned = []
    for role in Role.query_active().filter_by(is_default=True).order_by(Role.level.desc()):
        if _assignment_query(user.id, role.id, ScopeRef.global_()).first():
            continue
        ur = UserRole(user_id=user.id, role_id=role.id)
        db.session.add(ur)
        assigned.append(ur)
    return assigned


def get_user_roles(user_id: int, scope: ScopeRef = None) -> list[dict]:
    """
    Roles held by a user, with their scope and permissions.

    Soft-deleted roles and permissions are left out. ``scope`` narrows the
    result to one exact scope.
    """
    q = (
        UserRole.query.join(Role, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id, Role.active_filter())
    )
    if scope is not None:
        q = q.filter(UserRole.scope == scope.kind, UserRole.resource_id == scope.resource_id)

    result = []
    for ur in q.order_by(Role.level.desc(), Role.name).all():
        d = ur.role.to_dict()
        d.update(ur.scope_ref.to_dict())
        d["permissions"] = [
            rp.to_dict() for rp in ur.role.role_permissions
            if rp.permission is not None and not rp.permission.is_deleted
        ]
        result.append(d)
    return result


# ═══════════════════════════════════════════════════════════════
# Seeding
# ═══════════════════════════════════════════════════════════════
def seed_default_roles() -> dict:
    """
    Create the default permissions and roles that do not exist yet and link
    them. Safe to run repeatedly. Flushes but does not commit.

    Returns:
        {"roles": <created>, "permissions": <created>}
    """
    perm_map = {p.name: p for p in Permission.query_active().all()}
    created_perms = 0
    for name, resource, action, description in DEFAULT_PERMISSIONS:
        if name in perm_map:
            continue
        perm = Permission(name=name, resource=resource, action=action, description=description)
        db.session.add(perm)
        perm_map[name] = perm
        created_perms += 1
    db.session.flush()

    all_names = [name for name, *_ in DEFAULT_PERMISSIONS]
    created_roles = 0
    for role_name, role_def in DEFAULT_ROLES.items():
        role = Role.query_active().filter_by(name=role_name).first()
        if not role:
            role = Role(
                name=role_name,
                description=role_def["description"],
                level=role_def["level"],
                is_default=role_def["is_default"],
            )
            db.session.add(role)
            db.session.flush()
            created_roles += 1

        linked = {rp.permission_id for rp in role.role_permissions}
        conditions = role_def.get("conditions", {})
        for name in sorted(_expand_permissions(role_def["permissions"], all_names)):
            perm = perm_map[name]
            if perm.id in linked:
                continue
            db.session.add(RolePermission(
                role_id=role.id, permission_id=perm.id, conditions=dict(conditions.get(name, {})),
            ))
    db.session.flush()

    logger.info("RBAC seed: %d roles, %d permissions created", created_roles, created_perms)
    return {"roles": created_roles, "permissions": created_perms}
