# ===== agenda/services/availability/blocked_intervals.py =====
"""
Everything that makes a professional unavailable on a given day.

Appointments are padded by the establishment buffer on both sides; one-off and
recurring time blocks are taken as they are.
"""
from datetime import date, datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional
from uuid import UUID
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session
from zoneinfo import ZoneInfo

from agenda.models.appointment import Appointment, ACTIVE_STATUSES
from agenda.models.time_block import TimeBlock, RecurringTimeBlock
from agenda.utils.timeutils import ensure_utc, local_datetime, local_day_bounds, weekday_index

logger = logging.getLogger(__name__)


class Interval(NamedTuple):
    """Half-open [start, end) range in absolute time"""
    start: datetime
    end: datetime


def overlaps(start: datetime, end: datetime, blocked: Interval) -> bool:
    """
    Half-open intersection test.

    Covers a candidate starting inside the block, ending inside it, containing
    it or being contained by it. Touching boundaries do not overlap.
    """
    return start < blocked.end and end > blocked.start


def conflicts_with_any(start: datetime, end: datetime, blocked: Iterable[Interval]) -> bool:
    return any(overlaps(start, end, interval) for interval in blocked)


def appointment_intervals(appointments: Iterable[Appointment], buffer_minutes: int) -> List[Interval]:
    buffer = timedelta(minutes=buffer_minutes or 0)
    return [
        Interval(ensure_utc(appt.start_at) - buffer, ensure_utc(appt.end_at) + buffer)
        for appt in appointments
    ]


def time_block_intervals(blocks: Iterable[TimeBlock]) -> List[Interval]:
    return [Interval(ensure_utc(block.start_at), ensure_utc(block.end_at)) for block in blocks]


def recurring_block_intervals(
        blocks: Iterable[RecurringTimeBlock],
        target_date: date,
        tz: ZoneInfo
) -> List[Interval]:
    """Instantiate weekly blocks onto a concrete local date"""
    intervals = []
    for block in blocks:
        start = local_datetime(target_date, block.start_time, tz)
        end = local_datetime(target_date, block.end_time, tz)
        if end <= start:
            logger.warning(f"Skipping recurring block {block.id} with inverted times")
            continue
        intervals.append(Interval(ensure_utc(start), ensure_utc(end)))
    return intervals


class BlockedIntervalCollector:
    """Collects blocked intervals for one (professional, date)"""

    @staticmethod
    def collect(
            db: Session,
            establishment_id: UUID,
            professional_id: UUID,
            target_date: date,
            buffer_minutes: int,
            tz: ZoneInfo,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Interval]:
        day_start, day_end = local_day_bounds(target_date, tz)

        # The buffer can push an appointment from the neighbouring day into this one
        reach = timedelta(minutes=buffer_minutes or 0)

        appointments_query = db.query(Appointment).filter(
            Appointment.establishment_id == establishment_id,
            Appointment.professional_id == professional_id,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.start_at < day_end + reach,
            Appointment.end_at > day_start - reach
        )
        if exclude_appointment_id is not None:
            appointments_query = appointments_query.filter(Appointment.id != exclude_appointment_id)

        time_blocks = db.query(TimeBlock).filter(
            TimeBlock.establishment_id == establishment_id,
            or_(TimeBlock.professional_id == professional_id, TimeBlock.professional_id.is_(None)),
            TimeBlock.start_at < day_end,
            TimeBlock.end_at > day_start
        ).all()

        recurring_blocks = db.query(RecurringTimeBlock).filter(
            RecurringTimeBlock.establishment_id == establishment_id,
            or_(RecurringTimeBlock.professional_id == professional_id, RecurringTimeBlock.professional_id.is_(None)),
            RecurringTimeBlock.weekday == weekday_index(target_date),
            RecurringTimeBlock.active.is_(True)
        ).all()

        intervals = (
            appointment_intervals(appointments_query.all(), buffer_minutes)
            + time_block_intervals(time_blocks)
            + recurring_block_intervals(recurring_blocks, target_date, tz)
        )

        logger.debug(
            f"Collected {len(intervals)} blocked intervals for professional {professional_id} on {target_date}"
        )
        return intervals
