# ============================================================================
# agenda/services/appointment/transaction.py
# Tagged results and the commit boundary shared by booking/reschedule/cancel
# ============================================================================
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional, Tuple, Union
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agenda.core.exceptions import ConcurrentChange, SchedulingError, SlotConflict
from agenda.models.appointment import NO_OVERLAP_CONSTRAINT, Appointment
from agenda.services.notification.notification_service import NotificationService, NotificationType

logger = logging.getLogger(__name__)

# (establishment_id, professional_id, local date) whose availability changed
AffectedDay = Tuple[UUID, UUID, date]


@dataclass
class PendingChange:
    """What an operation did inside the transaction, applied once it commits"""
    appointment: Appointment
    notification: Optional[NotificationType] = None
    affected_days: List[AffectedDay] = field(default_factory=list)
    manage_token: Optional[str] = None


@dataclass
class TransactionSuccess:
    appointment: Appointment
    affected_days: List[AffectedDay] = field(default_factory=list)
    manage_token: Optional[str] = None
    notification_queued: bool = False
    success: bool = field(default=True, init=False)


@dataclass
class TransactionFailure:
    error: SchedulingError
    success: bool = field(default=False, init=False)

    @property
    def code(self) -> str:
        return self.error.code


TransactionResult = Union[TransactionSuccess, TransactionFailure]


def violated_constraint(error: IntegrityError) -> Optional[str]:
    """Name of the constraint behind an IntegrityError, when the driver reports it"""
    diag = getattr(error.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name
    # Drivers without diagnostics still mention the constraint in the message
    if NO_OVERLAP_CONSTRAINT in str(error.orig):
        return NO_OVERLAP_CONSTRAINT
    return None


def run_in_transaction(db: Session, operation: Callable[[], PendingChange], action: str) -> TransactionResult:
    """
    Run ``operation`` and commit, or roll back and return the domain error.

    The notification is queued only after the commit succeeded; a failure to
    queue it is logged and never undoes the change.
    """
    try:
        change = operation()
        db.flush()
        db.commit()
    except SchedulingError as e:
        db.rollback()
        logger.info(f"{action} rejected: {e.code} ({e.message})")
        return TransactionFailure(error=e)
    except IntegrityError as e:
        db.rollback()
        constraint = violated_constraint(e)
        logger.warning(f"{action} hit a storage conflict on {constraint}: {e.orig}")
        if constraint == NO_OVERLAP_CONSTRAINT:
            return TransactionFailure(error=SlotConflict())
        return TransactionFailure(error=ConcurrentChange())
    except Exception:
        db.rollback()
        logger.exception(f"{action} failed")
        raise

    db.refresh(change.appointment)
    logger.info(f"{action} committed for appointment {change.appointment.id}")

    queued = False
    if change.notification is not None:
        queued = NotificationService.dispatch(
            change.notification,
            change.appointment.id,
            manage_token=change.manage_token
        )

    return TransactionSuccess(
        appointment=change.appointment,
        affected_days=change.affected_days,
        manage_token=change.manage_token,
        notification_queued=queued
    )
