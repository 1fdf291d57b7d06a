from datetime import time, timedelta

import pytest

from agenda.services.availability.blocked_intervals import Interval
from agenda.services.availability.schedule_resolver import DaySchedule
from agenda.services.availability.slot_generator import fits_schedule, generate_slots
from tests.helpers import MONDAY, NOW, TZ, local

OPEN_9_TO_18 = DaySchedule(closed=False, open_time=time(9, 0), close_time=time(18, 0))


def _appointment_block(buffer_minutes=0):
    buffer = timedelta(minutes=buffer_minutes)
    return Interval(local(MONDAY, "10:00") - buffer, local(MONDAY, "10:45") + buffer)


def _slots(blocked=(), duration=30, stride=15, now=NOW, schedule=OPEN_9_TO_18):
    return generate_slots(MONDAY, schedule, blocked, duration, stride, now, TZ)


def test_free_day_walks_the_whole_window():
    slots = _slots()
    assert slots[0] == "09:00"
    assert slots[-1] == "17:30"
    assert len(slots) == 35


def test_existing_appointment_excludes_overlapping_starts():
    slots = _slots([_appointment_block()])

    assert "09:30" in slots  # ends exactly at 10:00
    for excluded in ("09:45", "10:00", "10:15", "10:30"):
        assert excluded not in slots
    assert "10:45" in slots


def test_buffer_widens_the_exclusion():
    slots = _slots([_appointment_block(buffer_minutes=10)])

    assert "09:15" in slots
    assert "09:30" not in slots
    assert "10:45" not in slots
    assert "11:00" in slots


def test_only_future_starts_are_offered():
    slots = _slots(now=local(MONDAY, "12:00"))
    assert slots[0] == "12:15"


def test_stride_is_anchored_at_opening_time():
    slots = _slots(duration=45, stride=20)
    assert slots[:3] == ["09:00", "09:20", "09:40"]
    assert slots[-1] == "17:00"


def test_closed_day_has_no_slots():
    assert _slots(schedule=DaySchedule.closed_day()) == []


def test_service_longer_than_window():
    short_day = DaySchedule(closed=False, open_time=time(9, 0), close_time=time(9, 20))
    assert _slots(schedule=short_day) == []


@pytest.mark.parametrize("duration,stride", [(0, 15), (30, 0), (-30, 15)])
def test_non_positive_duration_or_stride_is_rejected(duration, stride):
    with pytest.raises(ValueError):
        _slots(duration=duration, stride=stride)


def test_fits_schedule():
    assert fits_schedule(local(MONDAY, "17:30"), local(MONDAY, "18:00"), MONDAY, OPEN_9_TO_18, TZ)
    assert not fits_schedule(local(MONDAY, "17:45"), local(MONDAY, "18:15"), MONDAY, OPEN_9_TO_18, TZ)
    assert not fits_schedule(local(MONDAY, "08:45"), local(MONDAY, "09:15"), MONDAY, OPEN_9_TO_18, TZ)
    assert not fits_schedule(local(MONDAY, "10:00"), local(MONDAY, "10:30"), MONDAY, DaySchedule.closed_day(), TZ)


def test_same_inputs_same_slots():
    blocked = [_appointment_block(buffer_minutes=10)]
    assert _slots(blocked) == _slots(blocked)


def test_every_slot_fits_and_is_free():
    block = _appointment_block(buffer_minutes=10)
    now = local(MONDAY, "09:40")

    for slot in _slots([block], duration=45, now=now):
        start = local(MONDAY, slot)
        end = start + timedelta(minutes=45)
        assert start > now
        assert end <= local(MONDAY, "18:00")
        assert not (start < block.end and end > block.start)
