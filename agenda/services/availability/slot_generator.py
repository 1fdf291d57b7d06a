# ===== agenda/services/availability/slot_generator.py =====
from datetime import date, datetime, timedelta
from typing import Iterable, List
from zoneinfo import ZoneInfo

from agenda.services.availability.blocked_intervals import Interval, conflicts_with_any
from agenda.services.availability.schedule_resolver import DaySchedule
from agenda.utils.timeutils import ensure_utc, local_datetime


def generate_slots(
        target_date: date,
        schedule: DaySchedule,
        blocked: Iterable[Interval],
        duration_minutes: int,
        slot_interval_minutes: int,
        now: datetime,
        tz: ZoneInfo
) -> List[str]:
    """
    Bookable start times (``HH:MM``, ascending) for one day.

    A candidate is kept when it starts strictly after ``now``, its full
    duration fits before closing time and it does not overlap any blocked
    interval. Pure function of its inputs.
    """
    if schedule.closed:
        return []
    if duration_minutes <= 0 or slot_interval_minutes <= 0:
        raise ValueError("duration and slot interval must be positive")

    blocked = list(blocked)
    now = ensure_utc(now)
    duration = timedelta(minutes=duration_minutes)
    stride = timedelta(minutes=slot_interval_minutes)

    cursor = local_datetime(target_date, schedule.open_time, tz)
    close_at = local_datetime(target_date, schedule.close_time, tz)

    slots = []
    while cursor + duration <= close_at:
        slot_end = cursor + duration
        if ensure_utc(cursor) > now and not conflicts_with_any(ensure_utc(cursor), ensure_utc(slot_end), blocked):
            slots.append(cursor.strftime("%H:%M"))
        cursor += stride

    return slots


def fits_schedule(start: datetime, end: datetime, target_date: date, schedule: DaySchedule, tz: ZoneInfo) -> bool:
    """Whether [start, end) lies inside the day's opening window"""
    if schedule.closed:
        return False
    open_at = ensure_utc(local_datetime(target_date, schedule.open_time, tz))
    close_at = ensure_utc(local_datetime(target_date, schedule.close_time, tz))
    return open_at <= ensure_utc(start) and ensure_utc(end) <= close_at
