from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..core.constants import SCHOOL_UTC_OFFSET_HOURS
from ..core.exceptions import ValidationError


def parse_iso_datetime(value: Optional[str], field_name: str) -> datetime:
    """Parse an ISO-8601 instant into an aware UTC datetime.

    A trailing ``Z`` is accepted; naive values are taken as UTC.
    """

    if not value or not isinstance(value, str):
        raise ValidationError(f"Format {field_name} tidak valid (ISO 8601)")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Format {field_name} tidak valid (ISO 8601)")
    return as_utc(parsed)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_school_local(value: datetime, *, offset_hours: int = SCHOOL_UTC_OFFSET_HOURS) -> datetime:
    """Civil time at the school (fixed offset, no DST)."""

    return as_utc(value).astimezone(timezone(timedelta(hours=offset_hours)))


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """MySQL DATETIME has no zone; store naive UTC."""

    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def now_utc() -> datetime:
    """Current instant.

    Note: Wrapped so tests can patch it easier.
    """
    return datetime.now(timezone.utc)


def format_iso(value: Optional[datetime]) -> Optional[str]:
    """UTC ISO-8601 with a ``Z`` suffix, as the API returns instants."""

    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")
