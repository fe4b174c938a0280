"""Small helpers shared across layers."""

from datetime import datetime, timezone
from uuid import uuid4


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_id() -> str:
    return str(uuid4())


def epoch_millis(value: datetime) -> int:
    return int(ensure_utc(value).timestamp() * 1000)
