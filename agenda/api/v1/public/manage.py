# ============================================================================
# FILE: agenda/api/v1/public/manage.py
# Customer self-service through the manage link (no account needed)
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from agenda.api.dependencies import get_slot_cache
from agenda.api.v1.common import finish_change, http_error, load_slots
from agenda.config.database import get_db
from agenda.core.exceptions import SchedulingError
from agenda.schemas.appointment import (
    AppointmentChangeResponse,
    SlotsResponse,
    TokenCancelRequest,
    TokenRescheduleRequest,
)
from agenda.services.appointment.appointment_query_service import AppointmentQueryService
from agenda.services.appointment.appointment_transaction_service import AppointmentTransactionService
from agenda.services.availability.slot_cache import SlotCache

router = APIRouter(prefix="/manage", tags=["public-manage"])


@router.get("/appointment")
async def get_managed_appointment(
        token: str = Query(..., min_length=1, description="Manage link token"),
        db: Session = Depends(get_db)
):
    """Appointment details behind a manage link"""
    try:
        return AppointmentQueryService.get_appointment_by_token(db, token)
    except SchedulingError as e:
        raise http_error(e)


@router.get("/slots", response_model=SlotsResponse)
async def get_reschedule_slots(
        token: str = Query(..., min_length=1, description="Manage link token"),
        date: date = Query(..., description="Day to list"),
        professional_id: Optional[UUID] = Query(None, description="Another professional to move to"),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """Slots the appointment could move to; the appointment does not block itself"""
    try:
        appointment = AppointmentQueryService.get_appointment_by_token(db, token)
    except SchedulingError as e:
        raise http_error(e)

    return await load_slots(
        db,
        cache,
        establishment_id=UUID(appointment["establishment_id"]),
        professional_id=professional_id or UUID(appointment["professional_id"]),
        service_id=UUID(appointment["service_id"]),
        target_date=date,
        exclude_appointment_id=UUID(appointment["id"])
    )


@router.post("/reschedule", response_model=AppointmentChangeResponse)
async def reschedule_with_token(
        request: TokenRescheduleRequest,
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Move the appointment to a new time. The used link stops working and the
    response carries a fresh token (also sent in the reschedule e-mail).
    """
    result = AppointmentTransactionService.reschedule(
        db,
        appointment_id=request.appointment_id,
        new_start_at=request.new_start_at,
        token=request.token,
        new_professional_id=request.new_professional_id
    )
    return await finish_change(result, cache, "Appointment rescheduled")


@router.post("/cancel", response_model=AppointmentChangeResponse)
async def cancel_with_token(
        request: TokenCancelRequest,
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    result = AppointmentTransactionService.cancel(
        db,
        appointment_id=request.appointment_id,
        token=request.token,
        reason=request.reason
    )
    return await finish_change(result, cache, "Appointment canceled")
