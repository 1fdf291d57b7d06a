# ===== agenda/tasks/notification_tasks.py =====
from typing import Optional
from uuid import UUID
import logging

from agenda.config.celery_config import celery_app
from agenda.config.database import SessionLocal
from agenda.models.appointment import Appointment
from agenda.services.email.email_service import EmailService, AppointmentEmailContext
from agenda.utils.timeutils import ensure_utc, get_zone

logger = logging.getLogger(__name__)


def build_email_context(appointment: Appointment, manage_token: Optional[str] = None) -> AppointmentEmailContext:
    establishment = appointment.establishment
    local_start = ensure_utc(appointment.start_at).astimezone(get_zone(establishment.timezone))

    return AppointmentEmailContext(
        customer_name=appointment.customer.name,
        establishment_name=establishment.name,
        establishment_slug=establishment.slug,
        service_name=appointment.service.name,
        professional_name=appointment.professional.name,
        when=local_start.strftime("%d/%m/%Y %H:%M"),
        cancellation_policy=establishment.cancellation_policy_text,
        manage_token=manage_token
    )


@celery_app.task(bind=True, max_retries=3)
def send_appointment_notification(
        self,
        notification_type: str,
        appointment_id: str,
        manage_token: Optional[str] = None
):
    """
    Send one appointment e-mail (confirmation, reminder, cancellation, reschedule)

    Args:
        notification_type: Which template to send
        appointment_id: Appointment the e-mail is about
        manage_token: Fresh manage-link token to embed, if any
    """
    db = SessionLocal()
    try:
        appointment = db.query(Appointment).filter(Appointment.id == UUID(appointment_id)).first()
        if not appointment:
            logger.error(f"Appointment {appointment_id} not found")
            return {"status": "failed", "reason": "appointment_not_found"}

        email = appointment.customer.email if appointment.customer else None
        if not email:
            logger.info(f"Skipping {notification_type} e-mail for {appointment_id}: customer has no e-mail")
            return {"status": "skipped", "reason": "no_customer_email"}

        logger.info(f"Sending {notification_type} e-mail for appointment {appointment_id}")

        EmailService.send_appointment_email(
            to_email=email,
            notification_type=notification_type,
            context=build_email_context(appointment, manage_token)
        )

        logger.info(f"{notification_type} e-mail sent for appointment {appointment_id}")
        return {"status": "success", "appointment_id": appointment_id, "type": notification_type}

    except Exception as exc:
        logger.error(f"Failed to send {notification_type} e-mail for {appointment_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
    finally:
        db.close()
