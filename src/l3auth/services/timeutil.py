"""Timestamp helpers shared by nonces and sessions."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    # Keep time source centralized for easier testing/mocking.
    return datetime.now(UTC)


def to_iso(moment: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into UTC; naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a valid timestamp.
        OverflowError: If shifting the value to UTC leaves the supported range.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
