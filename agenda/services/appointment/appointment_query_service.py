# ============================================================================
# agenda/services/appointment/appointment_query_service.py
# Read-side helpers: serialization and lookups used by the API
# ============================================================================
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from agenda.models.appointment import Appointment
from agenda.services.manage_token.manage_token_service import ManageTokenService
from agenda.utils.timeutils import ensure_utc


class AppointmentQueryService:
    """Service layer for reading appointments."""

    @staticmethod
    def get_appointment_by_id(
            db: Session,
            establishment_id: UUID,
            appointment_id: UUID
    ) -> Optional[Dict[str, Any]]:
        """Get a single appointment by ID. Returns None if not found."""
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.establishment_id == establishment_id
        ).first()

        if not appointment:
            return None

        return AppointmentQueryService.serialize_appointment(appointment, detailed=True)

    @staticmethod
    def get_appointment_by_token(
            db: Session,
            token: str,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Appointment behind a manage link. Raises the token errors for bad links."""
        token_row = ManageTokenService.resolve(db, token, now)
        appointment = db.query(Appointment).filter(Appointment.id == token_row.appointment_id).first()
        return AppointmentQueryService.serialize_appointment(appointment, detailed=True)

    @staticmethod
    def serialize_appointment(appt: Appointment, detailed: bool = False) -> Dict[str, Any]:
        """Convert appointment model to dictionary."""
        data = {
            "id": str(appt.id),
            "establishment_id": str(appt.establishment_id),
            "professional_id": str(appt.professional_id),
            "service_id": str(appt.service_id),
            "customer_id": str(appt.customer_id),
            "start_at": ensure_utc(appt.start_at).isoformat(),
            "end_at": ensure_utc(appt.end_at).isoformat(),
            "status": appt.status,
        }

        if detailed:
            establishment = appt.establishment
            data.update({
                "customer_notes": appt.customer_notes,
                "customer": {
                    "id": str(appt.customer.id),
                    "name": appt.customer.name,
                    "phone": appt.customer.phone,
                    "email": appt.customer.email,
                } if appt.customer else None,
                "professional": {
                    "id": str(appt.professional.id),
                    "name": appt.professional.name,
                } if appt.professional else None,
                "service": {
                    "id": str(appt.service.id),
                    "name": appt.service.name,
                    "duration_minutes": appt.service.duration_minutes,
                    "price_cents": appt.service.price_cents,
                } if appt.service else None,
                "establishment": {
                    "id": str(establishment.id),
                    "name": establishment.name,
                    "slug": establishment.slug,
                    "timezone": establishment.timezone,
                    "reschedule_min_hours": establishment.reschedule_min_hours,
                    "cancellation_policy_text": establishment.cancellation_policy_text,
                } if establishment else None,
                "canceled_at": ensure_utc(appt.canceled_at).isoformat() if appt.canceled_at else None,
                "cancellation_reason": appt.cancellation_reason,
            })

        return data
