"""Time sources for library operations."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given instant. Used for testing and back-dating."""

    def __init__(self, instant: datetime):
        self.instant = as_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, days: int = 0, **kwargs) -> datetime:
        """Move the clock forward and return the new time."""
        self.instant = self.instant + timedelta(days=days, **kwargs)
        return self.instant


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp into an aware datetime."""
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))


def format_timestamp(value: datetime) -> str:
    """Format a datetime for storage."""
    return as_utc(value).isoformat()
