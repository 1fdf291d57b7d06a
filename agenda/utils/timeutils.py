# agenda/utils/timeutils.py
"""Date/time helpers shared by the scheduling services"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from agenda.config.settings import get_settings

logger = logging.getLogger(__name__)


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to the configured default"""
    try:
        return ZoneInfo(name or get_settings().DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using {get_settings().DEFAULT_TIMEZONE}")
        return ZoneInfo(get_settings().DEFAULT_TIMEZONE)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are taken to already be UTC (that is how they are stored).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def weekday_index(day: date) -> int:
    """Weekday as stored in hours/block rows: 0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


def local_datetime(day: date, at: time, tz: ZoneInfo) -> datetime:
    """Wall-clock time on a given day in the establishment's timezone"""
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=tz)


def local_day_bounds(day: date, tz: ZoneInfo):
    """UTC start/end of a local calendar day as a half-open pair"""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
