# ===== agenda/models/appointment.py =====
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from agenda.models.base import Base


class AppointmentStatus(str, enum.Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no_show"


# Statuses that occupy the professional's calendar
ACTIVE_STATUSES = (AppointmentStatus.BOOKED.value, AppointmentStatus.CONFIRMED.value)

# PostgreSQL exclusion constraint backing the row locks (see the initial migration)
NO_OVERLAP_CONSTRAINT = "ex_appointments_professional_no_overlap"

TERMINAL_STATUSES = (
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELED.value,
    AppointmentStatus.NO_SHOW.value,
)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.BOOKED.value: {
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELED.value,
        AppointmentStatus.NO_SHOW.value,
    },
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.CANCELED.value,
        AppointmentStatus.NO_SHOW.value,
    },
    AppointmentStatus.COMPLETED.value: set(),
    AppointmentStatus.CANCELED.value: set(),
    AppointmentStatus.NO_SHOW.value: set(),
}


class AppointmentEventType(str, enum.Enum):
    CREATED = "created"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    PROFESSIONAL_CHANGED = "professional_changed"
    CANCELED = "canceled"
    COMPLETED = "completed"
    NO_SHOW_MARKED = "no_show_marked"


class ActorType(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    STAFF = "staff"
    SYSTEM = "system"


# Event recorded for each status a transition lands on
STATUS_EVENT_TYPES = {
    AppointmentStatus.CONFIRMED.value: AppointmentEventType.CONFIRMED,
    AppointmentStatus.CANCELED.value: AppointmentEventType.CANCELED,
    AppointmentStatus.COMPLETED.value: AppointmentEventType.COMPLETED,
    AppointmentStatus.NO_SHOW.value: AppointmentEventType.NO_SHOW_MARKED,
}


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_appointments_end_after_start"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    establishment_id = Column(UUID(as_uuid=True), ForeignKey("establishments.id"), nullable=False, index=True)
    professional_id = Column(UUID(as_uuid=True), ForeignKey("professionals.id"), nullable=False, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False)

    # Appointment details, stored in UTC
    start_at = Column(DateTime(timezone=True), nullable=False, index=True)
    end_at = Column(DateTime(timezone=True), nullable=False)
    customer_notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=AppointmentStatus.BOOKED.value, index=True)

    # Reminders & notifications
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    establishment = relationship("Establishment")
    professional = relationship("Professional")
    service = relationship("Service")
    customer = relationship("Customer")
    events = relationship("AppointmentEvent", back_populates="appointment", order_by="AppointmentEvent.created_at")

    def __repr__(self):
        return f"<Appointment(id={self.id}, status={self.status}, start_at={self.start_at})>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status, set())


class AppointmentEvent(Base):
    """Append-only history of appointment changes"""
    __tablename__ = "appointment_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    event_type = Column(String(30), nullable=False)
    actor_type = Column(String(20), nullable=False, default=ActorType.SYSTEM.value)
    actor_user_id = Column(UUID(as_uuid=True), nullable=True)
    from_payload = Column(JSON, nullable=True)
    to_payload = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    appointment = relationship("Appointment", back_populates="events")
