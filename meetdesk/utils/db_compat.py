"""
Database compatibility helpers for SQLite and PostgreSQL.
"""
from datetime import timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from meetdesk.utils.time_utils import ensure_utc


class UTCDateTime(TypeDecorator):
    """DateTime stored as naive UTC and always loaded back as aware UTC.

    SQLite drops tzinfo on the way in, PostgreSQL keeps it; storing naive UTC
    on both keeps range comparisons consistent across backends.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return ensure_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
