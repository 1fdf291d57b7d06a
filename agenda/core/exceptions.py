# agenda/core/exceptions.py
"""
Domain errors raised by the scheduling services.

Each error carries a stable ``code`` (returned to clients so the UI can explain
exactly why an action failed) and the HTTP status the API maps it to.
"""


class SchedulingError(Exception):
    code = "scheduling_error"
    status_code = 400
    default_message = "The request could not be completed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404
    default_message = "Appointment not found"


class AuthorizationDenied(SchedulingError):
    code = "authorization_denied"
    status_code = 403
    default_message = "You are not allowed to change this appointment"


class TokenInvalid(SchedulingError):
    code = "token_invalid"
    status_code = 401
    default_message = "Invalid manage link"


class TokenExpired(SchedulingError):
    code = "token_expired"
    status_code = 410
    default_message = "This manage link has expired"


class TokenAlreadyUsed(SchedulingError):
    code = "token_already_used"
    status_code = 410
    default_message = "This manage link has already been used"


class TerminalAppointment(SchedulingError):
    code = "terminal_appointment"
    status_code = 409
    default_message = "This appointment can no longer be changed"


class InvalidStatusTransition(SchedulingError):
    code = "invalid_status_transition"
    status_code = 409
    default_message = "Status transition not allowed"


class SlotConflict(SchedulingError):
    code = "slot_unavailable"
    status_code = 409
    default_message = "The selected time is no longer available"


class MinimumNoticeViolation(SchedulingError):
    code = "minimum_notice_violation"
    status_code = 422
    default_message = "Changes are not allowed this close to the appointment"


class BookingUnavailable(SchedulingError):
    code = "booking_unavailable"
    status_code = 422
    default_message = "Booking is not available for this selection"


class ConcurrentChange(SchedulingError):
    code = "concurrent_change"
    status_code = 409
    default_message = "Another request changed the same data at the same time, please try again"
