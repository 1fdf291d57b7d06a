# ===== agenda/services/notification/reminder_service.py =====
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from agenda.models.appointment import Appointment, ACTIVE_STATUSES
from agenda.models.establishment import Establishment
from agenda.utils.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class ReminderService:
    """Selects appointments due for a reminder, at most once per reminder window"""

    @staticmethod
    def claim_due_reminders(db: Session, now: Optional[datetime] = None) -> List[UUID]:
        """
        Mark every active appointment starting within its establishment's
        reminder window and return their ids.

        The claim is a conditional update on ``reminder_sent_at IS NULL``, so
        overlapping sweeps never claim the same appointment twice. Rescheduling
        clears the marker, opening a new window.
        """
        now = ensure_utc(now or utcnow())
        claimed = []

        establishments = db.query(Establishment).filter(
            Establishment.reminder_hours_before > 0,
            Establishment.status == "active"
        ).all()

        for establishment in establishments:
            window_end = now + timedelta(hours=establishment.reminder_hours_before)

            candidates = db.query(Appointment.id).filter(
                Appointment.establishment_id == establishment.id,
                Appointment.status.in_(ACTIVE_STATUSES),
                Appointment.reminder_sent_at.is_(None),
                Appointment.start_at > now,
                Appointment.start_at <= window_end
            ).all()

            for (appointment_id,) in candidates:
                result = db.execute(
                    update(Appointment)
                    .where(Appointment.id == appointment_id, Appointment.reminder_sent_at.is_(None))
                    .values(reminder_sent_at=now)
                )
                if result.rowcount == 1:
                    claimed.append(appointment_id)

        db.commit()
        logger.info(f"Claimed {len(claimed)} due reminders")
        return claimed
