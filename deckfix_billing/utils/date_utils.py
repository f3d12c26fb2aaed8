"""Date manipulation utilities"""

import math
from datetime import datetime, timezone

SECONDS_PER_DAY = 86_400


def ceil_days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, partial days rounded up (negative if end < start)"""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def from_epoch_seconds(timestamp: int) -> datetime:
    """Billing provider timestamps are UTC epoch seconds"""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
