# ===== agenda/services/availability/schedule_resolver.py =====
"""
Effective working window for one professional on one weekday.

Establishment closure is absolute; a professional override can only close the
day or replace the opening times.
"""
from dataclasses import dataclass
from datetime import date, time
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from agenda.models.establishment import BusinessHours
from agenda.models.professional import ProfessionalHours
from agenda.utils.timeutils import weekday_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaySchedule:
    closed: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None

    @classmethod
    def closed_day(cls) -> "DaySchedule":
        return cls(closed=True)


def resolve_schedule(
        business_hours: Optional[BusinessHours],
        professional_hours: Optional[ProfessionalHours]
) -> DaySchedule:
    """Merge establishment hours and an optional professional override"""
    if business_hours is None or business_hours.closed:
        return DaySchedule.closed_day()

    if not business_hours.open_time or not business_hours.close_time:
        return DaySchedule.closed_day()

    if professional_hours is not None and professional_hours.closed:
        return DaySchedule.closed_day()

    open_time = business_hours.open_time
    close_time = business_hours.close_time

    if professional_hours is not None:
        # A partially filled override falls back field by field
        open_time = professional_hours.start_time or open_time
        close_time = professional_hours.end_time or close_time

    if open_time >= close_time:
        logger.warning(f"Ignoring inverted opening window {open_time}-{close_time}")
        return DaySchedule.closed_day()

    return DaySchedule(closed=False, open_time=open_time, close_time=close_time)


class ScheduleResolver:
    """Loads hours rows and resolves the effective window"""

    @staticmethod
    def get_day_schedule(
            db: Session,
            establishment_id: UUID,
            professional_id: UUID,
            target_date: date
    ) -> DaySchedule:
        weekday = weekday_index(target_date)

        business_hours = db.query(BusinessHours).filter(
            BusinessHours.establishment_id == establishment_id,
            BusinessHours.weekday == weekday
        ).first()

        professional_hours = db.query(ProfessionalHours).filter(
            ProfessionalHours.professional_id == professional_id,
            ProfessionalHours.weekday == weekday
        ).first()

        return resolve_schedule(business_hours, professional_hours)
