"""
Time helpers.

Scored trends carry an absolute instant (``created_at``). Internally every
instant is a timezone-aware UTC ``datetime``; on disk it is an ISO 8601
string with a ``Z`` suffix.
"""

from __future__ import annotations

from datetime import datetime, timezone

ISO_UTC_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """Format an aware datetime as an ISO 8601 UTC string.

    Args:
        value: Timezone-aware datetime (any offset).

    Returns:
        String such as ``"2026-10-18T09:30:00.000000Z"``.

    Raises:
        ValueError: If ``value`` is naive.
    """
    if value.tzinfo is None:
        raise ValueError("Cannot serialise a naive datetime as an absolute instant.")
    return value.astimezone(timezone.utc).strftime(ISO_UTC_FORMAT)


def parse_iso_utc(text: str) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts a ``Z`` suffix or an explicit offset. Naive strings are assumed
    to be UTC (SQLite ``strftime`` defaults write them that way).

    Args:
        text: ISO 8601 timestamp string.

    Returns:
        Timezone-aware datetime in UTC.
    """
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
