"""Time utilities for database models."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def isoformat(value: datetime | None) -> str | None:
    """Render a datetime as ISO-8601, assuming UTC for naive values.

    SQLite drops tzinfo on round-trip, so values read back may be naive.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()
