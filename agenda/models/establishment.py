# agenda/models/establishment.py
"""
Establishment (tenant) and its weekly business hours
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Time, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from agenda.models.base import Base


class Establishment(Base):
    __tablename__ = "establishments"
    __table_args__ = (
        CheckConstraint("slot_interval_minutes > 0", name="ck_establishments_slot_interval_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    owner_user_id = Column(UUID(as_uuid=True), nullable=True)

    # Booking configuration
    timezone = Column(String(50), nullable=False, default="America/Sao_Paulo")
    slot_interval_minutes = Column(Integer, nullable=False, default=15)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    max_future_days = Column(Integer, nullable=False, default=30)
    booking_enabled = Column(Boolean, nullable=False, default=True)
    auto_confirm_bookings = Column(Boolean, nullable=False, default=False)
    reschedule_min_hours = Column(Integer, nullable=False, default=0)
    reminder_hours_before = Column(Integer, nullable=False, default=24)
    cancellation_policy_text = Column(String, nullable=True)

    status = Column(String(20), nullable=False, default="active")  # active, suspended

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business_hours = relationship("BusinessHours", back_populates="establishment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Establishment(id={self.id}, slug={self.slug})>"

    @property
    def accepts_bookings(self) -> bool:
        return bool(self.booking_enabled) and self.status == "active"


class BusinessHours(Base):
    """Weekly opening hours, one row per (establishment, weekday). 0=Sunday, 6=Saturday."""
    __tablename__ = "business_hours"
    __table_args__ = (
        UniqueConstraint("establishment_id", "weekday", name="uq_business_hours_establishment_weekday"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_business_hours_weekday"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    establishment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("establishments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    weekday = Column(Integer, nullable=False)
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)
    closed = Column(Boolean, nullable=False, default=False)

    establishment = relationship("Establishment", back_populates="business_hours")

    def __repr__(self):
        return f"<BusinessHours(establishment_id={self.establishment_id}, weekday={self.weekday}, closed={self.closed})>"
