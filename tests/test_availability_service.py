from datetime import datetime, timedelta, timezone
import uuid

import pytest

from agenda.core.exceptions import BookingUnavailable, NotFound, SlotConflict
from agenda.models import ProfessionalService
from agenda.services.availability.availability_service import AvailabilityService
from tests.helpers import MONDAY, NOW, add_appointment, local


def _slots(db, world, **kwargs):
    params = dict(
        establishment_id=world.establishment.id,
        professional_id=world.ana.id,
        service_id=world.haircut.id,
        target_date=MONDAY,
        now=NOW,
    )
    params.update(kwargs)
    return AvailabilityService.get_available_slots(db, **params)


def test_slots_skip_existing_appointments(db, world):
    add_appointment(db, world, local(MONDAY, "10:00"), service=world.coloring)

    result = _slots(db, world)

    assert result.duration_minutes == 30
    assert result.timezone == "America/Sao_Paulo"
    assert "09:30" in result.slots
    assert "10:00" not in result.slots
    assert "10:45" in result.slots


def test_buffer_comes_from_the_establishment(db, world):
    world.establishment.buffer_minutes = 10
    db.commit()
    add_appointment(db, world, local(MONDAY, "10:00"), service=world.coloring)

    result = _slots(db, world)

    assert "09:30" not in result.slots
    assert "11:00" in result.slots


def test_excluded_appointment_frees_its_own_slot(db, world):
    appointment = add_appointment(db, world, local(MONDAY, "10:00"))

    assert "10:00" not in _slots(db, world).slots
    assert "10:00" in _slots(db, world, exclude_appointment_id=appointment.id).slots


def test_public_view_respects_booking_switch(db, world):
    world.establishment.booking_enabled = False
    db.commit()

    assert _slots(db, world).slots == []
    assert _slots(db, world, public=False).slots


def test_public_view_respects_booking_window(db, world):
    world.establishment.max_future_days = 1
    db.commit()

    assert _slots(db, world).slots == []
    assert _slots(db, world, public=False).slots


def test_past_day_has_no_slots(db, world):
    later = datetime(2030, 6, 10, 12, 0, tzinfo=timezone.utc)
    assert _slots(db, world, now=later, public=False).slots == []


def test_closed_day_is_flagged(db, world):
    for row in world.establishment.business_hours:
        row.closed = True
    db.commit()

    result = _slots(db, world)
    assert result.closed
    assert result.slots == []


def test_professional_must_perform_the_service(db, world):
    db.query(ProfessionalService).filter(
        ProfessionalService.professional_id == world.bruno.id,
        ProfessionalService.service_id == world.haircut.id
    ).delete()
    db.commit()

    with pytest.raises(BookingUnavailable):
        _slots(db, world, professional_id=world.bruno.id)


def test_inactive_professional_is_not_bookable(db, world):
    world.ana.active = False
    db.commit()

    with pytest.raises(BookingUnavailable):
        _slots(db, world)


def test_unknown_establishment(db, world):
    with pytest.raises(NotFound):
        _slots(db, world, establishment_id=uuid.uuid4())


def test_assert_slot_available(db, world):
    add_appointment(db, world, local(MONDAY, "10:00"))
    establishment = world.establishment

    AvailabilityService.assert_slot_available(
        db, establishment, world.ana.id, local(MONDAY, "10:30"), local(MONDAY, "11:00")
    )

    with pytest.raises(SlotConflict):
        AvailabilityService.assert_slot_available(
            db, establishment, world.ana.id, local(MONDAY, "10:15"), local(MONDAY, "10:45")
        )

    with pytest.raises(SlotConflict):
        AvailabilityService.assert_slot_available(
            db, establishment, world.ana.id, local(MONDAY, "17:45"), local(MONDAY, "18:15")
        )


def test_booking_window_is_inclusive(world):
    establishment = world.establishment
    today = NOW.date()

    assert AvailabilityService.is_within_booking_window(establishment, today, NOW)
    assert AvailabilityService.is_within_booking_window(establishment, today + timedelta(days=60), NOW)
    assert not AvailabilityService.is_within_booking_window(establishment, today + timedelta(days=61), NOW)
    assert not AvailabilityService.is_within_booking_window(establishment, today - timedelta(days=1), NOW)
