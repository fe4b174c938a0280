"""
Custom SQLAlchemy types for specialized data handling.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, TypeDecorator

from campus_exit.core.utils import ensure_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as UTC.

    SQLite has no timezone support, so values are stored there as naive UTC
    and re-tagged on the way out; comparisons in SQL stay consistent because
    every bound value goes through the same conversion.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return value
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return value
        return ensure_utc(value)
