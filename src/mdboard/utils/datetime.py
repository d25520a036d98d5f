"""Utilities for datetime handling."""

from datetime import UTC, date, datetime, timedelta

# Unit lengths in seconds, largest first
_DURATION_UNITS: tuple[tuple[str, float], ...] = (
    ("year", 365.25 * 86400),
    ("month", 30.4375 * 86400),
    ("week", 7 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_iso(dt: datetime) -> str:
    """Convert datetime to ISO format string."""
    return dt.isoformat()


def from_iso(value: str) -> datetime:
    """Parse ISO format string to datetime."""
    # Handle both 'Z' suffix and explicit timezone
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def coerce_datetime(value: str | date | datetime | None) -> datetime | None:
    """Coerce a front matter value into a timezone-aware datetime.

    Naive datetimes and plain dates are taken to be UTC so that every date
    on the board can be compared with every other.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    else:
        result = from_iso(str(value))
    if result.tzinfo is None:
        result = result.replace(tzinfo=UTC)
    return result


def humanize_duration(delta: timedelta, largest: int = 3) -> str:
    """Describe a duration in words, e.g. "2 days, 3 hours, 5 minutes".

    Only the ``largest`` most significant non-zero units are shown and the
    last one is rounded. The sign of ``delta`` is ignored.
    """
    remaining = abs(delta.total_seconds())
    parts: list[tuple[str, int]] = []

    for index, (unit, seconds) in enumerate(_DURATION_UNITS):
        if len(parts) == largest:
            break
        last = len(parts) == largest - 1 or index == len(_DURATION_UNITS) - 1
        count = round(remaining / seconds) if last else int(remaining // seconds)
        if count:
            parts.append((unit, count))
            remaining -= count * seconds

    if not parts:
        return "0 seconds"
    return ", ".join(f"{count} {unit}{'' if count == 1 else 's'}" for unit, count in parts)
