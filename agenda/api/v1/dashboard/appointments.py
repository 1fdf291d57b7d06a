# ============================================================================
# FILE: agenda/api/v1/dashboard/appointments.py
# Session authenticated endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session
from uuid import UUID

from agenda.api.dependencies import get_auth_scope, get_slot_cache
from agenda.api.v1.common import finish_change
from agenda.config.database import get_db
from agenda.core.security import AuthScope
from agenda.schemas.appointment import (
    AppointmentChangeResponse,
    CancelRequest,
    RescheduleRequest,
    StatusUpdateRequest,
)
from agenda.services.appointment.appointment_query_service import AppointmentQueryService
from agenda.services.appointment.appointment_transaction_service import AppointmentTransactionService
from agenda.services.availability.slot_cache import SlotCache

router = APIRouter(prefix="/appointments", tags=["dashboard-appointments"])


@router.get("/{appointment_id}")
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        scope: AuthScope = Depends(get_auth_scope),
        db: Session = Depends(get_db)
):
    """
    Get detailed information about a specific appointment.
    Requires authenticated session.
    """
    result = AppointmentQueryService.get_appointment_by_id(
        db=db,
        establishment_id=scope.establishment_id,
        appointment_id=appointment_id
    )

    if not result or (scope.professional_id and result["professional_id"] != str(scope.professional_id)):
        raise HTTPException(
            status_code=404,
            detail="Appointment not found or you don't have access to it"
        )

    return result


@router.post("/{appointment_id}/reschedule", response_model=AppointmentChangeResponse)
async def reschedule_appointment(
        request: RescheduleRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        scope: AuthScope = Depends(get_auth_scope),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Move an appointment to a new time, optionally with another professional.
    Requires authenticated session.
    """
    result = AppointmentTransactionService.reschedule(
        db,
        appointment_id=appointment_id,
        new_start_at=request.new_start_at,
        scope=scope,
        new_professional_id=request.new_professional_id
    )
    return await finish_change(result, cache, "Appointment rescheduled")


@router.post("/{appointment_id}/cancel", response_model=AppointmentChangeResponse)
async def cancel_appointment(
        request: CancelRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        scope: AuthScope = Depends(get_auth_scope),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    result = AppointmentTransactionService.cancel(
        db,
        appointment_id=appointment_id,
        scope=scope,
        reason=request.reason
    )
    return await finish_change(result, cache, "Appointment canceled")


@router.patch("/{appointment_id}/status", response_model=AppointmentChangeResponse)
async def update_appointment_status(
        request: StatusUpdateRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        scope: AuthScope = Depends(get_auth_scope),
        db: Session = Depends(get_db),
        cache: SlotCache = Depends(get_slot_cache)
):
    """
    Confirm, complete, cancel or mark no-show.
    Completed, canceled and no-show are final.
    """
    result = AppointmentTransactionService.update_status(
        db,
        appointment_id=appointment_id,
        new_status=request.status,
        scope=scope
    )
    return await finish_change(result, cache, f"Appointment marked {request.status}")
