# ===== agenda/services/notification/notification_service.py =====
"""Queues appointment e-mails; delivery happens in the Celery worker"""
from typing import Optional
from uuid import UUID
import enum
import logging

from agenda.schemas.task_payloads import AppointmentNotificationPayload
from agenda.tasks.notification_tasks import send_appointment_notification

logger = logging.getLogger(__name__)


class NotificationType(str, enum.Enum):
    CONFIRMATION = "confirmation"
    REMINDER = "reminder"
    CANCELLATION = "cancellation"
    RESCHEDULE = "reschedule"


class NotificationService:
    """Fire-and-forget dispatch of appointment notifications"""

    @staticmethod
    def dispatch(
            notification_type: NotificationType,
            appointment_id: UUID,
            manage_token: Optional[str] = None
    ) -> bool:
        """
        Queue one notification. Never raises: the change it reports on is
        already committed, so failures are only logged.
        """
        payload = AppointmentNotificationPayload(
            notification_type=NotificationType(notification_type).value,
            appointment_id=str(appointment_id),
            manage_token=manage_token
        )

        try:
            send_appointment_notification.apply_async(
                kwargs=payload.model_dump(mode="json"),
                retry=False
            )
            logger.info(f"Queued {payload.notification_type} notification for appointment {appointment_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to queue {payload.notification_type} notification for {appointment_id}: {e}")
            return False
