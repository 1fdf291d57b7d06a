# agenda/models/__init__.py
from .base import Base
from .establishment import Establishment, BusinessHours
from .professional import Professional, ProfessionalHours, ProfessionalService
from .service import Service
from .customer import Customer
from .appointment import Appointment, AppointmentEvent, AppointmentStatus, AppointmentEventType, ActorType
from .time_block import TimeBlock, RecurringTimeBlock
from .manage_token import AppointmentManageToken
from .user import User, StaffRole

__all__ = [
    "Base",
    "Establishment",
    "BusinessHours",
    "Professional",
    "ProfessionalHours",
    "ProfessionalService",
    "Service",
    "Customer",
    "Appointment",
    "AppointmentEvent",
    "AppointmentStatus",
    "AppointmentEventType",
    "ActorType",
    "TimeBlock",
    "RecurringTimeBlock",
    "AppointmentManageToken",
    "User",
    "StaffRole",
]
