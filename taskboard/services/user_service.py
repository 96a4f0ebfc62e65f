"""
User Service: account CRUD, login bookkeeping, soft/hard deletion.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from taskboard.core.exceptions import ConflictError, NotFoundError
from taskboard.models import db
from taskboard.models.auth import User

logger = logging.getLogger(__name__)


def _commit_unique(field: str, value) -> None:
    """Commit, reporting a uniqueness failure on ``field`` as ConflictError."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("User", field, value) from exc


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    q = User.query_active().filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return db.session.query(q.exists()).scalar()


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def create_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    is_active: bool = True,
    with_default_roles: bool = True,
) -> User:
    """Create a new user, optionally granting the default roles."""
    if _email_taken(email):
        raise ConflictError("User", "email", email)

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        is_active=is_active,
    )
    user.password = password
    db.session.add(user)

    if with_default_roles:
        from taskboard.services.rbac_service import assign_default_roles

        db.session.flush()  # Get user.id before assigning roles
        assign_default_roles(user)

    _commit_unique("email", email)
    logger.info("User created id=%s", user.id, extra={"entity": "User", "entity_id": user.id})
    return user


def get_user(user_id: int) -> User:
    """Return an active user or raise NotFoundError."""
    user = User.query_active().filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def get_user_by_email(email: str) -> User | None:
    """Find an active user by exact e-mail."""
    return User.query_active().filter(User.email == email).first()


def update_user(user_id: int, **kwargs) -> User:
    """Update profile fields; ``password`` is re-hashed."""
    user = get_user(user_id)

    if "email" in kwargs and kwargs["email"] != user.email and _email_taken(kwargs["email"], user.id):
        raise ConflictError("User", "email", kwargs["email"])

    if "password" in kwargs:
        user.password = kwargs["password"]

    allowed = {"email", "first_name", "last_name", "is_active"}
    for key, val in kwargs.items():
        if key in allowed:
            setattr(user, key, val)

    _commit_unique("email", user.email)
    return user


def record_login(user_id: int) -> User:
    """Stamp ``last_login`` with the current time."""
    user = get_user(user_id)
    user.last_login = datetime.now(timezone.utc)
    db.session.commit()
    return user


# ═══════════════════════════════════════════════════════════════
# Deletion
# ═══════════════════════════════════════════════════════════════
def delete_user(user_id: int, hard: bool = False) -> None:
    """
    Delete a user.

    Soft (default): the user, their time entries and comments are marked
    deleted; tasks assigned to them are unassigned.
    Hard: the row is removed and the storage FK actions take over
    (owned rows cascade, task assignments are set to NULL).
    """
    if hard:
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError(resource="User", resource_id=user_id)
        db.session.delete(user)
    else:
        user = get_user(user_id)
        user.soft_delete()
    db.session.commit()
    logger.info("User deleted id=%s hard=%s", user_id, hard,
                extra={"entity": "User", "entity_id": user_id})


def restore_user(user_id: int) -> User:
    """Restore a soft-deleted user together with the rows deleted with them."""
    user = User.query_deleted().filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    if _email_taken(user.email, user.id):
        raise ConflictError("User", "email", user.email)

    user.restore()
    _commit_unique("email", user.email)
    logger.info("User restored id=%s", user_id, extra={"entity": "User", "entity_id": user_id})
    return user
