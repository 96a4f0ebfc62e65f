"""
Field and cross-field validation helpers used by model ``validate()`` hooks.

Every helper appends to an ``errors`` dict (field -> message) instead of
raising, so a record reports all failed fields at once. Models call
``raise_if_errors`` at the end of ``validate()``.

Naive datetimes are treated as UTC.
"""

from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email

from taskboard.core.exceptions import ValidationError


def utcnow() -> datetime:
    """Current instant (tz-aware). Validators compare against this."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def require_text(errors: dict, field: str, value) -> None:
    """Required string that is not blank."""
    if value is None:
        errors[field] = "is required"
    elif not isinstance(value, str) or not value.strip():
        errors[field] = "must not be empty"


def require_choice(errors: dict, field: str, value, choices) -> None:
    if value not in choices:
        errors[field] = f"must be one of: {', '.join(choices)}"


def require_min(errors: dict, field: str, value, minimum: int) -> None:
    """Numeric value >= minimum. None passes (nullable columns opt out)."""
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        errors[field] = "must be an integer"
    elif value < minimum:
        errors[field] = f"must be greater than or equal to {minimum}"


def require_present(errors: dict, field: str, value) -> None:
    if value is None:
        errors[field] = "is required"


def require_after(errors: dict, field: str, value, other_field: str, other) -> None:
    """``value`` must be strictly later than ``other``.

    No-op when ``value`` is absent, or when ``other`` is absent (the
    required-field check on ``other_field`` reports that case).
    """
    if value is None or other is None:
        return
    if as_utc(value) <= as_utc(other):
        errors[field] = f"must be after {other_field}"


def require_future(errors: dict, field: str, value) -> None:
    """``value`` must be strictly later than the validation instant."""
    if value is None:
        return
    if as_utc(value) <= utcnow():
        errors[field] = "must be in the future"


def require_email(errors: dict, field: str, value) -> None:
    """Syntactic e-mail check. The value itself is stored as given."""
    if value is None or (isinstance(value, str) and not value.strip()):
        errors[field] = "is required"
        return
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        errors[field] = f"is not a valid e-mail address ({exc})"


def require_mapping(errors: dict, field: str, value) -> None:
    if value is not None and not isinstance(value, dict):
        errors[field] = "must be a JSON object"


def raise_if_errors(entity: str, errors: dict) -> None:
    if not errors:
        return
    summary = "; ".join(f"{field} {message}" for field, message in errors.items())
    raise ValidationError(f"{entity} is invalid: {summary}", details=errors)
