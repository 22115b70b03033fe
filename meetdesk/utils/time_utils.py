"""
UTC time helpers and the clock abstraction used by services
"""
from datetime import datetime, timezone
from typing import Optional


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_meeting_time(value: datetime) -> str:
    """Human-readable instant for notification bodies, e.g. 'Jun 01, 2025 10:00 UTC'"""
    return ensure_utc(value).strftime("%b %d, %Y %H:%M UTC")


def describe_lead_time(minutes_before: int) -> str:
    if minutes_before >= 60:
        return f"{minutes_before // 60} hour(s)"
    return f"{minutes_before} minute(s)"


class Clock:
    """Supplies the current UTC instant"""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return utcnow()
