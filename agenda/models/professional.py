# agenda/models/professional.py
"""
Professionals, their personal weekly hours and the services they perform
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Time, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from agenda.models.base import Base


class Professional(Base):
    __tablename__ = "professionals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    establishment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("establishments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    capacity = Column(Integer, nullable=False, default=1)  # Reserved, not used by slot exclusion

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    hours = relationship("ProfessionalHours", back_populates="professional", cascade="all, delete-orphan")
    service_links = relationship("ProfessionalService", back_populates="professional", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Professional(id={self.id}, name={self.name})>"


class ProfessionalHours(Base):
    """Per-weekday override of the establishment's business hours for one professional"""
    __tablename__ = "professional_hours"
    __table_args__ = (
        UniqueConstraint("professional_id", "weekday", name="uq_professional_hours_professional_weekday"),
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_professional_hours_weekday"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    professional_id = Column(
        UUID(as_uuid=True),
        ForeignKey("professionals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    weekday = Column(Integer, nullable=False)  # 0=Sunday
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    closed = Column(Boolean, nullable=False, default=False)

    professional = relationship("Professional", back_populates="hours")


class ProfessionalService(Base):
    """Which professional can perform which service"""
    __tablename__ = "professional_services"
    __table_args__ = (
        UniqueConstraint("professional_id", "service_id", name="uq_professional_services_pair"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    professional_id = Column(
        UUID(as_uuid=True),
        ForeignKey("professionals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    service_id = Column(
        UUID(as_uuid=True),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    professional = relationship("Professional", back_populates="service_links")
