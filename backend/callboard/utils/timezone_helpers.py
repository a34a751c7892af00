"""
Timezone conversion helpers for location-aware date/hour extraction.
Uses zoneinfo for Python-side conversion; the database only ever sees UTC.
"""
from datetime import date, datetime, time, timedelta
from typing import Tuple
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def utc_to_local(utc_dt: datetime, timezone_str: str | None) -> datetime:
    """Python-side conversion of a UTC datetime to a local datetime."""
    tz = ZoneInfo(timezone_str) if timezone_str else UTC
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=UTC)
    return utc_dt.astimezone(tz)


def local_range_to_utc(start_date: date, end_date: date, timezone_str: str | None) -> Tuple[datetime, datetime]:
    """
    UTC bounds [start, end) covering whole local days start_date..end_date.

    Local midnight is resolved in the location's zone so a call at 23:30 local
    is fetched with the day it belongs to, not the next UTC day.
    """
    tz = ZoneInfo(timezone_str) if timezone_str else UTC
    start_local = datetime.combine(start_date, time.min, tzinfo=tz)
    end_local = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=tz)
    return start_local.astimezone(UTC), end_local.astimezone(UTC)
