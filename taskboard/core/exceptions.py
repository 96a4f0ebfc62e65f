"""
Exception hierarchy shared by models and services.

Models raise ValidationError from the flush listener before a record is
written. Services raise NotFoundError and ConflictError, and translate
storage uniqueness failures (IntegrityError) into ConflictError.

Usage:
    from taskboard.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ValidationError("End date must be after start date",
                          details={"end_date": "must be after start_date"})
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist or is soft-deleted.

    Args:
        resource: Entity name (e.g. "User", "Role").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a record violates a field or cross-field rule.

    The record is rejected before any statement reaches storage.

    Args:
        message: Human-readable explanation of what failed.
        details: Field-level breakdown. Keys are attribute names; values
                 are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when a write would duplicate a value unique among active rows.

    Args:
        resource: Entity name.
        field: The unique attribute that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)
