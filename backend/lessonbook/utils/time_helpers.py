from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def combine_utc(day: date, start: time) -> datetime:
    """Combine a lesson date and start time into an aware UTC datetime."""
    return datetime.combine(day, start.replace(tzinfo=None), tzinfo=timezone.utc)


def hours_until(target: datetime, now: datetime) -> float:
    return (ensure_utc(target) - ensure_utc(now)).total_seconds() / 3600
