"""
Pydantic schemas for booking and appointment-change requests
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID


# ============================================================================
# Request Schemas
# ============================================================================

def _require_timezone(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("datetime must include a timezone offset")
    return value


class BookingRequest(BaseModel):
    """Public booking form"""
    establishment_id: UUID
    service_id: UUID
    professional_id: UUID
    start_at: datetime = Field(..., description="Start time with timezone offset")
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: str = Field(..., min_length=8, max_length=30)
    customer_email: Optional[EmailStr] = Field(None, description="Where confirmations and reminders are sent")
    customer_notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("start_at")
    @classmethod
    def validate_start_at(cls, v):
        return _require_timezone(v)


class RescheduleRequest(BaseModel):
    """Dashboard reschedule; the end time is derived from the service duration"""
    new_start_at: datetime
    new_professional_id: Optional[UUID] = None

    @field_validator("new_start_at")
    @classmethod
    def validate_new_start_at(cls, v):
        return _require_timezone(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="confirmed, completed, canceled or no_show")


class TokenRescheduleRequest(BaseModel):
    """Customer reschedule through a manage link"""
    token: str = Field(..., min_length=1)
    appointment_id: UUID
    new_start_at: datetime
    new_professional_id: Optional[UUID] = Field(None, description="Move to another professional of the same establishment")

    @field_validator("new_start_at")
    @classmethod
    def validate_new_start_at(cls, v):
        return _require_timezone(v)


class TokenCancelRequest(BaseModel):
    token: str = Field(..., min_length=1)
    appointment_id: UUID
    reason: Optional[str] = Field(None, max_length=500)


# ============================================================================
# Response Schemas
# ============================================================================

class AppointmentSummary(BaseModel):
    id: UUID
    establishment_id: UUID
    professional_id: UUID
    service_id: UUID
    customer_id: UUID
    start_at: datetime
    end_at: datetime
    status: str

    model_config = {"from_attributes": True}


class AppointmentChangeResponse(BaseModel):
    success: bool = True
    appointment: AppointmentSummary
    manage_token: Optional[str] = None
    message: str


class SlotsResponse(BaseModel):
    date: date
    timezone: str
    duration_minutes: int
    closed: bool
    slots: List[str]
