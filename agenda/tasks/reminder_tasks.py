# ===== agenda/tasks/reminder_tasks.py =====
import logging

from agenda.config.celery_config import celery_app
from agenda.config.database import SessionLocal
from agenda.services.notification.notification_service import NotificationService, NotificationType
from agenda.services.notification.reminder_service import ReminderService

logger = logging.getLogger(__name__)


@celery_app.task
def dispatch_due_reminders():
    """Periodic sweep: queue one reminder per appointment entering its reminder window"""
    db = SessionLocal()
    try:
        appointment_ids = ReminderService.claim_due_reminders(db)
    finally:
        db.close()

    for appointment_id in appointment_ids:
        NotificationService.dispatch(NotificationType.REMINDER, appointment_id)

    logger.info(f"Reminder sweep queued {len(appointment_ids)} reminders")
    return {"status": "success", "queued": len(appointment_ids)}
