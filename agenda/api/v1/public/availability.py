# ============================================================================
# FILE: agenda/api/v1/public/availability.py
# Public slot listing for the booking page
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from uuid import UUID

from agenda.api.dependencies import get_slot_cache
from agenda.api.v1.common import load_slots
from agenda.config.database import get_db
from agenda.schemas.appointment import SlotsResponse
from agenda.services.availability.slot_cache import SlotCache

router = APIRouter(prefix="/availability", tags=["public-availability"])


@router.get("/slots", response_model=SlotsResponse)
async def get_slots(
        establishment_id: UUID = Query(..., description="Establishment ID"),
        professional_id: UUID = Query(..., description="Professional ID"),
        service_id: UUID = Query(..., description="Service ID"),
        date: date = Query(..., description="Day to list, in the establishment's timezone"),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Bookable start times (HH:MM) for a service with a professional on one day.
    An empty list means the day is closed, fully booked or outside the booking window.
    """
    return await load_slots(db, cache, establishment_id, professional_id, service_id, date)
