# ============================================================================
# FILE: agenda/models/user.py
# Dashboard users (owners and staff). Credentials live with the auth provider.
# ============================================================================
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
import enum
from agenda.models.base import Base


class StaffRole(str, enum.Enum):
    """User roles within an establishment."""
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)

    establishment_id = Column(UUID(as_uuid=True), ForeignKey("establishments.id"), nullable=True)
    # Set for staff accounts bound to one professional's calendar
    professional_id = Column(UUID(as_uuid=True), ForeignKey("professionals.id"), nullable=True)
    role = Column(SQLEnum(StaffRole), default=StaffRole.STAFF, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User {self.email}>"
