"""
Soft Delete Mixin

Adds a `deleted_at` timestamp column and query helpers for soft delete.
Models that include this mixin are marked as deleted rather than
physically removed. Read paths go through `query_active()`; deleted rows
are only visible through `query_deleted()` or the raw `query`.

Cascade:
    `__soft_delete_cascade__` names the one-to-many relationships whose
    still-active rows are soft-deleted together with the parent. All rows
    touched by one `soft_delete()` share the same stamp, which lets
    `restore()` bring back exactly those rows and nothing deleted earlier.

Usage:
    class Team(SoftDeleteMixin, TimestampedModel):
        __soft_delete_cascade__ = ("projects",)

    team.soft_delete()          # team + its projects + their tasks ...
    db.session.commit()

    Team.query_active().all()   # excludes deleted rows

    team.restore()
    db.session.commit()
"""

from datetime import datetime, timezone

from taskboard.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    __soft_delete_cascade__: tuple[str, ...] = ()

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, default=None, index=True)

    def soft_delete(self, stamp: datetime | None = None) -> datetime:
        """Mark this record, and its cascaded children, as deleted."""
        stamp = stamp or datetime.now(timezone.utc)
        if self.deleted_at is None:
            self.deleted_at = stamp
        for name in self.__soft_delete_cascade__:
            for child in getattr(self, name):
                if child.deleted_at is None:
                    child.soft_delete(stamp)
        return stamp

    def restore(self):
        """Restore this record and the children deleted together with it."""
        stamp = self.deleted_at
        if stamp is None:
            return
        self.deleted_at = None
        for name in self.__soft_delete_cascade__:
            for child in getattr(self, name):
                if child.deleted_at is not None and child.deleted_at == stamp:
                    child.restore()

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def active_filter(cls):
        """Criterion selecting non-deleted rows, for hand-written queries."""
        return cls.deleted_at.is_(None)

    @classmethod
    def query_active(cls):
        """Return a query that excludes soft-deleted records."""
        return cls.query.filter(cls.deleted_at.is_(None))

    @classmethod
    def query_deleted(cls):
        """Return only soft-deleted records."""
        return cls.query.filter(cls.deleted_at.isnot(None))
