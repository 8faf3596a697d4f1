"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime | None = None) -> str:
    """Format a timestamp as ISO 8601 in UTC with a trailing Z.

    OTA messages carry TimeStamp/CreateDateTime attributes in this form.
    """
    value = value or utc_now()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="seconds").replace("+00:00", "Z")
