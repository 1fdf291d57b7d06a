# agenda/api/v1/common.py
"""Helpers shared by the public and dashboard routes"""
from datetime import date
from typing import Optional
from uuid import UUID
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from agenda.core.exceptions import SchedulingError
from agenda.schemas.appointment import AppointmentChangeResponse, AppointmentSummary, SlotsResponse
from agenda.services.appointment.appointment_query_service import AppointmentQueryService
from agenda.services.appointment.transaction import TransactionFailure, TransactionResult
from agenda.services.availability.availability_service import AvailabilityService
from agenda.services.availability.slot_cache import SlotCache
from agenda.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def http_error(error: SchedulingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


async def finish_change(result: TransactionResult, cache: SlotCache, message: str) -> AppointmentChangeResponse:
    """Turn a transaction result into a response, invalidating cached slots on success"""
    if isinstance(result, TransactionFailure):
        raise http_error(result.error)

    await cache.invalidate(result.affected_days)

    return AppointmentChangeResponse(
        appointment=AppointmentSummary(**AppointmentQueryService.serialize_appointment(result.appointment)),
        manage_token=result.manage_token,
        message=message
    )


async def load_slots(
        db: Session,
        cache: SlotCache,
        establishment_id: UUID,
        professional_id: UUID,
        service_id: UUID,
        target_date: date,
        exclude_appointment_id: Optional[UUID] = None,
        public: bool = True
) -> SlotsResponse:
    """Slots for one day; only the plain public view goes through the cache"""
    now = utcnow()
    cacheable = public and exclude_appointment_id is None

    generation = 0
    if cacheable:
        generation = await cache.current_generation(establishment_id, professional_id, target_date)
        cached = await cache.get(establishment_id, professional_id, service_id, target_date, now, generation)
        if cached is not None:
            return SlotsResponse(**cached.to_dict())

    try:
        availability = AvailabilityService.get_available_slots(
            db,
            establishment_id=establishment_id,
            professional_id=professional_id,
            service_id=service_id,
            target_date=target_date,
            now=now,
            exclude_appointment_id=exclude_appointment_id,
            public=public
        )
    except SchedulingError as e:
        raise http_error(e)

    if cacheable:
        await cache.set(establishment_id, professional_id, service_id, availability, generation)

    return SlotsResponse(**availability.to_dict())
