# ============================================================================
# agenda/services/booking/booking_service.py
# Public booking: validate, check availability under lock, create, notify
# ============================================================================
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from agenda.core.exceptions import BookingUnavailable, SlotConflict
from agenda.models.appointment import ActorType, Appointment, AppointmentEventType, AppointmentStatus
from agenda.models.customer import Customer
from agenda.services.appointment.appointment_transaction_service import affected_day, record_event
from agenda.services.appointment.transaction import PendingChange, TransactionResult, run_in_transaction
from agenda.services.availability.availability_service import AvailabilityService
from agenda.services.manage_token.manage_token_service import ManageTokenService
from agenda.services.notification.notification_service import NotificationType
from agenda.utils.timeutils import ensure_utc, get_zone, utcnow

logger = logging.getLogger(__name__)


class BookingService:
    """Creates appointments from the public booking flow"""

    @staticmethod
    def _upsert_customer(
            db: Session,
            establishment_id: UUID,
            name: str,
            phone: str,
            email: Optional[str],
            user_id: Optional[UUID]
    ) -> Customer:
        customer = db.query(Customer).filter(
            Customer.establishment_id == establishment_id,
            Customer.phone == phone
        ).first()

        if customer is None:
            customer = Customer(
                establishment_id=establishment_id,
                name=name,
                phone=phone,
                email=email,
                user_id=user_id
            )
            db.add(customer)
            db.flush()
            return customer

        customer.name = name
        if email:
            customer.email = email
        if user_id and not customer.user_id:
            customer.user_id = user_id
        return customer

    @staticmethod
    def create_booking(
            db: Session,
            establishment_id: UUID,
            service_id: UUID,
            professional_id: UUID,
            start_at: datetime,
            customer_name: str,
            customer_phone: str,
            customer_email: Optional[str] = None,
            customer_notes: Optional[str] = None,
            customer_user_id: Optional[UUID] = None,
            now: Optional[datetime] = None
    ) -> TransactionResult:
        """
        Book ``service_id`` with ``professional_id`` at ``start_at``.

        On success the result carries the raw manage token; it is the only
        time the token is available in clear.
        """
        now = ensure_utc(now or utcnow())

        def operation() -> PendingChange:
            establishment = AvailabilityService.get_establishment(db, establishment_id)
            if not establishment.accepts_bookings:
                raise BookingUnavailable("This establishment is not accepting bookings")

            service = AvailabilityService.get_bookable_service(db, establishment_id, service_id)
            # Locks the professional's calendar until commit
            AvailabilityService.get_bookable_professional(
                db, establishment_id, professional_id, service_id, for_update=True
            )

            start = ensure_utc(start_at)
            end = start + timedelta(minutes=service.duration_minutes)

            if start <= now:
                raise SlotConflict("The selected time is in the past")

            local_date = start.astimezone(get_zone(establishment.timezone)).date()
            if not AvailabilityService.is_within_booking_window(establishment, local_date, now):
                raise BookingUnavailable(
                    f"Bookings are accepted up to {establishment.max_future_days} days ahead"
                )

            AvailabilityService.assert_slot_available(db, establishment, professional_id, start, end)

            customer = BookingService._upsert_customer(
                db, establishment_id, customer_name, customer_phone, customer_email, customer_user_id
            )

            status = (
                AppointmentStatus.CONFIRMED.value
                if establishment.auto_confirm_bookings
                else AppointmentStatus.BOOKED.value
            )
            appointment = Appointment(
                establishment_id=establishment_id,
                professional_id=professional_id,
                service_id=service_id,
                customer_id=customer.id,
                start_at=start,
                end_at=end,
                status=status,
                customer_notes=customer_notes
            )
            db.add(appointment)
            db.flush()

            record_event(db, appointment, AppointmentEventType.CREATED, ActorType.CUSTOMER.value,
                         to_payload={"start_at": start.isoformat(), "end_at": end.isoformat(), "status": status})

            raw_token, _ = ManageTokenService.issue(db, appointment, now)

            return PendingChange(
                appointment=appointment,
                notification=NotificationType.CONFIRMATION,
                affected_days=[affected_day(appointment, establishment)],
                manage_token=raw_token
            )

        return run_in_transaction(db, operation, "Booking")
