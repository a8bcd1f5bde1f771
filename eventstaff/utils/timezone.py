"""Timezone helpers.

Timestamps are stored and compared in UTC. Calendar boundaries such as
"first day of the current month" are taken in the business's local timezone.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config.settings import Config

UTC = timezone.utc


def local_zone() -> ZoneInfo:
    return ZoneInfo(Config.LOCAL_TIMEZONE)


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC (SQLite hands back naive
    datetimes for timezone-aware columns).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def start_of_local_month(now: Optional[datetime] = None) -> datetime:
    """First instant of the current month in local time, expressed in UTC."""
    local_now = ensure_utc(now or now_utc()).astimezone(local_zone())
    month_start = local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return month_start.astimezone(UTC)


def from_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Interpret a naive datetime entered by a user as local time, returned in UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=local_zone())
    return dt.astimezone(UTC)
