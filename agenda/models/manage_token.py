# ============================================================================
# FILE: agenda/models/manage_token.py
# Self-service link token: stored hashed, expiring, single use
# ============================================================================
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from datetime import datetime, timezone
import hashlib
import secrets
import uuid

from agenda.models.base import Base
from agenda.utils.timeutils import ensure_utc


class AppointmentManageToken(Base):
    """
    Maps the SHA-256 hash of a customer's manage link token to one appointment.
    The raw token is only ever known to the customer.
    """
    __tablename__ = "appointment_manage_tokens"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    token_hash = Column(String(64), unique=True, nullable=False, index=True)

    appointment_id = Column(
        UUID(as_uuid=True),
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @staticmethod
    def generate_token() -> str:
        """Generate a secure random token for a manage link."""
        return secrets.token_urlsafe(32)

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def is_expired(self, now: datetime = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return ensure_utc(now) >= ensure_utc(self.expires_at)

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def __repr__(self):
        return f"<AppointmentManageToken {self.token_hash[:8]}... appointment={self.appointment_id}>"
