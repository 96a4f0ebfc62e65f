"""
TimestampedModel: abstract base for every taskboard table.

Adds:
  - integer surrogate primary key ``id``
  - ``created_at`` / ``updated_at`` (UTC, ``updated_at`` refreshed on update)
  - a ``validate()`` hook run by a flush listener before INSERT and UPDATE,
    so an invalid record never reaches storage
  - scalar column defaults applied at construction time, so validators see
    the same values the INSERT would write
"""

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import event

from taskboard.models import db

# Writes that only move a record in or out of the deleted state.
_LIFECYCLE_ATTRS = frozenset({"deleted_at", "updated_at"})


def _now():
    return datetime.now(timezone.utc)


def iso(value):
    return value.isoformat() if value else None


class TimestampedModel(db.Model):
    """Abstract base for all taskboard tables."""
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def __init__(self, **kwargs):
        for prop in sa.inspect(type(self)).column_attrs:
            column = prop.columns[0]
            if prop.key in kwargs or column.default is None:
                continue
            if column.default.is_scalar:
                kwargs[prop.key] = column.default.arg
        super().__init__(**kwargs)

    def validate(self):
        """Raise ValidationError if the record may not be written."""

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"


def _changed_columns(target) -> set[str]:
    state = sa.inspect(target)
    return {
        prop.key for prop in state.mapper.column_attrs
        if state.attrs[prop.key].history.has_changes()
    }


@event.listens_for(TimestampedModel, "before_insert", propagate=True)
def _validate_before_insert(mapper, connection, target):
    target.validate()


@event.listens_for(TimestampedModel, "before_update", propagate=True)
def _validate_before_update(mapper, connection, target):
    # Collection changes and soft delete / restore leave the row's own data
    # alone, so they must not trip time-based rules.
    if _changed_columns(target) <= _LIFECYCLE_ATTRS:
        return
    target.validate()
