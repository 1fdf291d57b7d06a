# ===== agenda/services/availability/availability_service.py =====
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from agenda.core.exceptions import BookingUnavailable, NotFound, SlotConflict
from agenda.models.establishment import Establishment
from agenda.models.professional import Professional, ProfessionalService
from agenda.models.service import Service
from agenda.services.availability.blocked_intervals import BlockedIntervalCollector, conflicts_with_any
from agenda.services.availability.schedule_resolver import ScheduleResolver
from agenda.services.availability.slot_generator import generate_slots, fits_schedule
from agenda.utils.timeutils import ensure_utc, get_zone, utcnow

logger = logging.getLogger(__name__)


@dataclass
class DayAvailability:
    date: date
    timezone: str
    duration_minutes: int
    slots: List[str] = field(default_factory=list)
    closed: bool = False

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "timezone": self.timezone,
            "duration_minutes": self.duration_minutes,
            "closed": self.closed,
            "slots": list(self.slots),
        }


class AvailabilityService:
    """Computes bookable slots from hours, appointments and time blocks"""

    @staticmethod
    def get_establishment(db: Session, establishment_id: UUID) -> Establishment:
        establishment = db.query(Establishment).filter(Establishment.id == establishment_id).first()
        if not establishment:
            raise NotFound("Establishment not found")
        return establishment

    @staticmethod
    def get_bookable_service(db: Session, establishment_id: UUID, service_id: UUID) -> Service:
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.establishment_id == establishment_id
        ).first()
        if not service or not service.active:
            raise BookingUnavailable("Service not available")
        return service

    @staticmethod
    def get_bookable_professional(
            db: Session,
            establishment_id: UUID,
            professional_id: UUID,
            service_id: UUID,
            for_update: bool = False
    ) -> Professional:
        """Active professional of this establishment who performs the service"""
        query = db.query(Professional).filter(
            Professional.id == professional_id,
            Professional.establishment_id == establishment_id
        )
        if for_update:
            query = query.with_for_update()
        professional = query.first()

        if not professional or not professional.active:
            raise BookingUnavailable("Professional not available")

        performs_service = db.query(ProfessionalService).filter(
            ProfessionalService.professional_id == professional_id,
            ProfessionalService.service_id == service_id
        ).first()
        if not performs_service:
            raise BookingUnavailable("Professional does not perform this service")

        return professional

    @staticmethod
    def is_within_booking_window(establishment: Establishment, target_date: date, now: datetime) -> bool:
        """Target date between today and today + max_future_days (establishment local time)"""
        today = ensure_utc(now).astimezone(get_zone(establishment.timezone)).date()
        last_day = today + timedelta(days=establishment.max_future_days)
        return today <= target_date <= last_day

    @staticmethod
    def get_available_slots(
            db: Session,
            establishment_id: UUID,
            professional_id: UUID,
            service_id: UUID,
            target_date: date,
            now: Optional[datetime] = None,
            exclude_appointment_id: Optional[UUID] = None,
            public: bool = True
    ) -> DayAvailability:
        """
        Bookable start times for a service with one professional on one day.

        ``public`` applies the establishment's booking switches (booking
        enabled, max future days); staff views skip them.
        """
        now = now or utcnow()

        establishment = AvailabilityService.get_establishment(db, establishment_id)
        service = AvailabilityService.get_bookable_service(db, establishment_id, service_id)
        AvailabilityService.get_bookable_professional(db, establishment_id, professional_id, service_id)

        result = DayAvailability(
            date=target_date,
            timezone=establishment.timezone,
            duration_minutes=service.duration_minutes
        )

        if public:
            if not establishment.accepts_bookings:
                logger.info(f"Establishment {establishment_id} is not accepting bookings")
                return result
            if not AvailabilityService.is_within_booking_window(establishment, target_date, now):
                return result

        schedule = ScheduleResolver.get_day_schedule(db, establishment_id, professional_id, target_date)
        if schedule.closed:
            result.closed = True
            return result

        tz = get_zone(establishment.timezone)
        blocked = BlockedIntervalCollector.collect(
            db,
            establishment_id=establishment_id,
            professional_id=professional_id,
            target_date=target_date,
            buffer_minutes=establishment.buffer_minutes,
            tz=tz,
            exclude_appointment_id=exclude_appointment_id
        )

        result.slots = generate_slots(
            target_date=target_date,
            schedule=schedule,
            blocked=blocked,
            duration_minutes=service.duration_minutes,
            slot_interval_minutes=establishment.slot_interval_minutes,
            now=now,
            tz=tz
        )

        logger.info(
            f"Computed {len(result.slots)} slots for professional {professional_id} on {target_date}"
        )
        return result

    @staticmethod
    def assert_slot_available(
            db: Session,
            establishment: Establishment,
            professional_id: UUID,
            start_at: datetime,
            end_at: datetime,
            exclude_appointment_id: Optional[UUID] = None
    ) -> None:
        """
        Raise SlotConflict unless [start_at, end_at) is inside the professional's
        opening window and free of blocked intervals.

        Reads current rows; callers run it inside the transaction that writes.
        """
        tz = get_zone(establishment.timezone)
        target_date = ensure_utc(start_at).astimezone(tz).date()

        schedule = ScheduleResolver.get_day_schedule(db, establishment.id, professional_id, target_date)
        if not fits_schedule(start_at, end_at, target_date, schedule, tz):
            raise SlotConflict("The selected time is outside working hours")

        blocked = BlockedIntervalCollector.collect(
            db,
            establishment_id=establishment.id,
            professional_id=professional_id,
            target_date=target_date,
            buffer_minutes=establishment.buffer_minutes,
            tz=tz,
            exclude_appointment_id=exclude_appointment_id
        )

        if conflicts_with_any(ensure_utc(start_at), ensure_utc(end_at), blocked):
            raise SlotConflict()
