"""Clock helpers shared by the application layer."""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]

SECONDS_PER_DAY = 86400.0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with the clock."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end, negative when end is earlier."""
    return (ensure_aware(end) - ensure_aware(start)).total_seconds() / SECONDS_PER_DAY
