# ============================================================================
# FILE: agenda/api/v1/dashboard/availability.py
# Staff slot view: ignores the public booking switches
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from agenda.api.dependencies import get_auth_scope, get_slot_cache
from agenda.api.v1.common import load_slots
from agenda.config.database import get_db
from agenda.core.security import AuthScope
from agenda.schemas.appointment import SlotsResponse
from agenda.services.availability.slot_cache import SlotCache

router = APIRouter(prefix="/availability", tags=["dashboard-availability"])


@router.get("/slots", response_model=SlotsResponse)
async def get_staff_slots(
        professional_id: UUID = Query(..., description="Professional ID"),
        service_id: UUID = Query(..., description="Service ID"),
        date: date = Query(..., description="Day to list"),
        exclude_appointment_id: Optional[UUID] = Query(
            None, description="Appointment being rescheduled; it does not block itself"
        ),
        scope: AuthScope = Depends(get_auth_scope),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Get bookable slots for your establishment.
    Requires authenticated session.
    """
    if scope.professional_id is not None and scope.professional_id != professional_id:
        raise HTTPException(status_code=403, detail="You can only view your own calendar")

    return await load_slots(
        db,
        cache,
        establishment_id=scope.establishment_id,
        professional_id=professional_id,
        service_id=service_id,
        target_date=date,
        exclude_appointment_id=exclude_appointment_id,
        public=False
    )
