# ============================================================================
# agenda/services/appointment/appointment_transaction_service.py
# Reschedule / cancel / status changes without double-booking
# ============================================================================
"""
Every mutation here follows the same shape:

1. authorize (dashboard scope or customer manage token),
2. lock the rows involved (token, appointment, professional calendars),
3. re-validate against freshly read blocked intervals,
4. write, record an event, commit,
5. queue exactly one notification.

Professional rows are locked in sorted order so that any two writers touching
the same calendar serialize instead of both passing the availability check.
"""
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from agenda.core.exceptions import (
    AuthorizationDenied,
    InvalidStatusTransition,
    MinimumNoticeViolation,
    NotFound,
    SlotConflict,
    TerminalAppointment,
)
from agenda.core.security import AuthScope
from agenda.models.appointment import (
    ActorType,
    Appointment,
    AppointmentEvent,
    AppointmentEventType,
    AppointmentStatus,
    STATUS_EVENT_TYPES,
)
from agenda.models.establishment import Establishment
from agenda.models.manage_token import AppointmentManageToken
from agenda.models.professional import Professional
from agenda.services.availability.availability_service import AvailabilityService
from agenda.services.appointment.transaction import PendingChange, TransactionResult, run_in_transaction
from agenda.services.manage_token.manage_token_service import ManageTokenService
from agenda.services.notification.notification_service import NotificationType
from agenda.utils.timeutils import ensure_utc, get_zone, utcnow

logger = logging.getLogger(__name__)


def lock_professionals(db: Session, professional_ids: Iterable[UUID]) -> None:
    """SELECT ... FOR UPDATE on each professional, in a stable order"""
    for professional_id in sorted(set(professional_ids), key=str):
        db.query(Professional).filter(Professional.id == professional_id).with_for_update().first()


def record_event(
        db: Session,
        appointment: Appointment,
        event_type: AppointmentEventType,
        actor_type: str,
        actor_user_id: Optional[UUID] = None,
        from_payload: Optional[dict] = None,
        to_payload: Optional[dict] = None
) -> AppointmentEvent:
    event = AppointmentEvent(
        appointment_id=appointment.id,
        event_type=event_type.value,
        actor_type=actor_type,
        actor_user_id=actor_user_id,
        from_payload=from_payload,
        to_payload=to_payload
    )
    db.add(event)
    return event


def check_minimum_notice(establishment: Establishment, moment: datetime, now: datetime) -> None:
    hours = establishment.reschedule_min_hours or 0
    if hours <= 0:
        return
    if ensure_utc(moment) - ensure_utc(now) < timedelta(hours=hours):
        raise MinimumNoticeViolation(
            f"Changes must be made at least {hours} hours in advance"
        )


def affected_day(appointment: Appointment, establishment: Establishment):
    local_start = ensure_utc(appointment.start_at).astimezone(get_zone(establishment.timezone))
    return appointment.establishment_id, appointment.professional_id, local_start.date()


class AppointmentTransactionService:
    """Reschedule, cancel and status updates as single atomic units"""

    @staticmethod
    def _authorize(
            db: Session,
            appointment_id: UUID,
            scope: Optional[AuthScope],
            token: Optional[str],
            now: datetime
    ) -> Tuple[Appointment, Optional[AppointmentManageToken], str, Optional[UUID]]:
        """Returns (locked appointment, token row or None, actor type, actor user id)"""
        if token is not None:
            token_row = ManageTokenService.authorize(db, token, appointment_id, now)
            appointment = db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).with_for_update().first()
            if not appointment:
                raise NotFound()
            return appointment, token_row, ActorType.CUSTOMER.value, None

        if scope is None:
            raise AuthorizationDenied()

        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.establishment_id == scope.establishment_id
        ).with_for_update().first()
        if not appointment:
            raise NotFound()
        if not scope.covers(appointment.establishment_id, appointment.professional_id):
            raise AuthorizationDenied()

        return appointment, None, scope.actor_type, scope.user_id

    @staticmethod
    def reschedule(
            db: Session,
            appointment_id: UUID,
            new_start_at: datetime,
            scope: Optional[AuthScope] = None,
            token: Optional[str] = None,
            new_professional_id: Optional[UUID] = None,
            now: Optional[datetime] = None
    ) -> TransactionResult:
        """
        Move an active appointment to a new start (and optionally a new
        professional). The end is recomputed from the service duration.
        """
        now = ensure_utc(now or utcnow())

        def operation() -> PendingChange:
            appointment, token_row, actor_type, actor_user_id = AppointmentTransactionService._authorize(
                db, appointment_id, scope, token, now
            )
            if appointment.is_terminal:
                raise TerminalAppointment()

            establishment = appointment.establishment
            old_professional_id = appointment.professional_id
            target_professional_id = new_professional_id or old_professional_id
            professional_changed = target_professional_id != old_professional_id

            if professional_changed and scope is not None and not scope.covers(
                    appointment.establishment_id, target_professional_id):
                raise AuthorizationDenied("You cannot move appointments to this professional")

            lock_professionals(db, [old_professional_id, target_professional_id])

            if professional_changed:
                AvailabilityService.get_bookable_professional(
                    db, establishment.id, target_professional_id, appointment.service_id
                )

            new_start = ensure_utc(new_start_at)
            new_end = new_start + timedelta(minutes=appointment.service.duration_minutes)

            if new_start <= now:
                raise SlotConflict("The selected time is in the past")

            AvailabilityService.assert_slot_available(
                db,
                establishment,
                target_professional_id,
                new_start,
                new_end,
                exclude_appointment_id=appointment.id
            )

            if token_row is not None:
                check_minimum_notice(establishment, appointment.start_at, now)
                check_minimum_notice(establishment, new_start, now)

            affected = [affected_day(appointment, establishment)]
            from_payload = {
                "start_at": ensure_utc(appointment.start_at).isoformat(),
                "end_at": ensure_utc(appointment.end_at).isoformat(),
                "professional_id": str(old_professional_id),
            }

            appointment.start_at = new_start
            appointment.end_at = new_end
            appointment.professional_id = target_professional_id
            appointment.reminder_sent_at = None

            to_payload = {
                "start_at": new_start.isoformat(),
                "end_at": new_end.isoformat(),
                "professional_id": str(target_professional_id),
            }
            record_event(db, appointment, AppointmentEventType.RESCHEDULED, actor_type, actor_user_id,
                         from_payload, to_payload)
            if professional_changed:
                record_event(db, appointment, AppointmentEventType.PROFESSIONAL_CHANGED, actor_type, actor_user_id,
                             {"professional_id": str(old_professional_id)},
                             {"professional_id": str(target_professional_id)})

            fresh_token = None
            if token_row is not None:
                ManageTokenService.mark_used(token_row, now)
                fresh_token, _ = ManageTokenService.issue(db, appointment, now)

            affected.append(affected_day(appointment, establishment))

            return PendingChange(
                appointment=appointment,
                notification=NotificationType.RESCHEDULE,
                affected_days=affected,
                manage_token=fresh_token
            )

        return run_in_transaction(db, operation, "Reschedule")

    @staticmethod
    def cancel(
            db: Session,
            appointment_id: UUID,
            scope: Optional[AuthScope] = None,
            token: Optional[str] = None,
            reason: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> TransactionResult:
        now = ensure_utc(now or utcnow())

        def operation() -> PendingChange:
            appointment, token_row, actor_type, actor_user_id = AppointmentTransactionService._authorize(
                db, appointment_id, scope, token, now
            )
            if appointment.is_terminal:
                raise TerminalAppointment()

            establishment = appointment.establishment
            if token_row is not None:
                check_minimum_notice(establishment, appointment.start_at, now)

            previous_status = appointment.status
            appointment.status = AppointmentStatus.CANCELED.value
            appointment.canceled_at = now
            appointment.cancellation_reason = reason

            record_event(db, appointment, AppointmentEventType.CANCELED, actor_type, actor_user_id,
                         {"status": previous_status}, {"status": appointment.status, "reason": reason})

            if token_row is not None:
                ManageTokenService.mark_used(token_row, now)

            return PendingChange(
                appointment=appointment,
                notification=NotificationType.CANCELLATION,
                affected_days=[affected_day(appointment, establishment)]
            )

        return run_in_transaction(db, operation, "Cancellation")

    @staticmethod
    def update_status(
            db: Session,
            appointment_id: UUID,
            new_status: str,
            scope: AuthScope,
            now: Optional[datetime] = None
    ) -> TransactionResult:
        """Staff-driven status change following the appointment state machine"""
        now = ensure_utc(now or utcnow())

        def operation() -> PendingChange:
            try:
                target = AppointmentStatus(new_status).value
            except ValueError:
                raise InvalidStatusTransition(f"Unknown status {new_status!r}")

            appointment, _, actor_type, actor_user_id = AppointmentTransactionService._authorize(
                db, appointment_id, scope, None, now
            )
            if appointment.is_terminal:
                raise TerminalAppointment()
            if not appointment.can_transition_to(target):
                raise InvalidStatusTransition(f"Cannot change status from {appointment.status} to {target}")

            previous_status = appointment.status
            appointment.status = target
            if target == AppointmentStatus.CANCELED.value:
                appointment.canceled_at = now
            elif target == AppointmentStatus.COMPLETED.value:
                appointment.completed_at = now

            record_event(db, appointment, STATUS_EVENT_TYPES[target], actor_type, actor_user_id,
                         {"status": previous_status}, {"status": target})

            notification = NotificationType.CANCELLATION if target == AppointmentStatus.CANCELED.value else None
            return PendingChange(
                appointment=appointment,
                notification=notification,
                affected_days=[affected_day(appointment, appointment.establishment)]
            )

        return run_in_transaction(db, operation, f"Status change to {new_status}")
