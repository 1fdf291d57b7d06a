# agenda/schemas/__init__.py
from .task_payloads import AppointmentNotificationPayload

from .appointment import (
    BookingRequest,
    RescheduleRequest,
    CancelRequest,
    StatusUpdateRequest,
    TokenRescheduleRequest,
    TokenCancelRequest,
    AppointmentSummary,
    AppointmentChangeResponse,
    SlotsResponse,
)

__all__ = [
    "AppointmentNotificationPayload",
    "BookingRequest",
    "RescheduleRequest",
    "CancelRequest",
    "StatusUpdateRequest",
    "TokenRescheduleRequest",
    "TokenCancelRequest",
    "AppointmentSummary",
    "AppointmentChangeResponse",
    "SlotsResponse",
]
