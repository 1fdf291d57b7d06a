# ============================================================================
# FILE: agenda/api/v1/public/bookings.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from agenda.api.dependencies import get_slot_cache
from agenda.api.v1.common import finish_change
from agenda.config.database import get_db
from agenda.schemas.appointment import AppointmentChangeResponse, BookingRequest
from agenda.services.availability.slot_cache import SlotCache
from agenda.services.booking.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["public-bookings"])


@router.post("", response_model=AppointmentChangeResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
        request: BookingRequest,
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Book an appointment. The response carries the manage token for the
    customer's reschedule/cancel link; it is not retrievable later.
    """
    result = BookingService.create_booking(
        db,
        establishment_id=request.establishment_id,
        service_id=request.service_id,
        professional_id=request.professional_id,
        start_at=request.start_at,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        customer_email=request.customer_email,
        customer_notes=request.customer_notes
    )
    return await finish_change(result, cache, "Appointment booked")
