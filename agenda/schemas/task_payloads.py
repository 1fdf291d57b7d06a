from __future__ import annotations
# agenda/schemas/task_payloads.py
from pydantic import BaseModel, Field
from typing import Optional, Literal


class AppointmentNotificationPayload(BaseModel):
    """Payload for the appointment notification task"""
    notification_type: Literal["confirmation", "reminder", "cancellation", "reschedule"] = Field(
        ..., description="Which e-mail to send"
    )
    appointment_id: str = Field(..., description="Appointment the e-mail is about")
    manage_token: Optional[str] = Field(None, description="Fresh manage-link token to include, if one was issued")
