import asyncio
import uuid
from datetime import timedelta

import pytest

from agenda.services.availability.availability_service import DayAvailability
from agenda.services.availability.slot_cache import SlotCache
from tests.helpers import MONDAY, NOW, TZ_NAME, local


class FakeRedis:
    """The handful of redis.asyncio commands the slot cache uses"""

    def __init__(self):
        self.values = {}
        self.sets = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value

    async def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)

    async def expire(self, key, seconds):
        return True

    async def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.sets.pop(key, None) is not None)
        return removed


class BrokenRedis:
    async def get(self, key):
        raise ConnectionError("redis is down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis is down")


@pytest.fixture(autouse=True)
def cache_enabled(monkeypatch):
    monkeypatch.setattr(SlotCache, "enabled", staticmethod(lambda: True))


IDS = (uuid.uuid4(), uuid.uuid4(), uuid.uuid4())


def _availability(slots):
    return DayAvailability(date=MONDAY, timezone=TZ_NAME, duration_minutes=30, slots=slots)


def test_round_trip_and_invalidate():
    establishment_id, professional_id, service_id = IDS
    cache = SlotCache(client=FakeRedis())

    async def scenario():
        await cache.set(establishment_id, professional_id, service_id, _availability(["09:00", "09:15"]))
        hit = await cache.get(establishment_id, professional_id, service_id, MONDAY, NOW)
        await cache.invalidate([(establishment_id, professional_id, MONDAY)])
        miss = await cache.get(establishment_id, professional_id, service_id, MONDAY, NOW)
        return hit, miss

    hit, miss = asyncio.run(scenario())

    assert hit.slots == ["09:00", "09:15"]
    assert miss is None


def test_invalidation_is_scoped_to_the_professional_day():
    establishment_id, professional_id, service_id = IDS
    other_professional = uuid.uuid4()
    cache = SlotCache(client=FakeRedis())

    async def scenario():
        await cache.set(establishment_id, professional_id, service_id, _availability(["09:00"]))
        await cache.set(establishment_id, other_professional, service_id, _availability(["10:00"]))
        await cache.invalidate([(establishment_id, professional_id, MONDAY)])
        return await cache.get(establishment_id, other_professional, service_id, MONDAY, NOW)

    assert asyncio.run(scenario()).slots == ["10:00"]


def test_cached_slots_that_started_are_hidden():
    establishment_id, professional_id, service_id = IDS
    cache = SlotCache(client=FakeRedis())

    async def scenario(now):
        await cache.set(establishment_id, professional_id, service_id, _availability(["09:00", "12:00", "15:00"]))
        return await cache.get(establishment_id, professional_id, service_id, MONDAY, now)

    assert asyncio.run(scenario(local(MONDAY, "12:00"))).slots == ["15:00"]
    assert asyncio.run(scenario(local(MONDAY, "12:00") + timedelta(days=1))).slots == []


def test_redis_failures_fall_back_to_computing():
    establishment_id, professional_id, service_id = IDS
    cache = SlotCache(client=BrokenRedis())

    async def scenario():
        await cache.set(establishment_id, professional_id, service_id, _availability(["09:00"]))
        return await cache.get(establishment_id, professional_id, service_id, MONDAY, NOW)

    assert asyncio.run(scenario()) is None


def test_disabled_cache_never_touches_redis(monkeypatch):
    monkeypatch.setattr(SlotCache, "enabled", staticmethod(lambda: False))
    establishment_id, professional_id, service_id = IDS
    cache = SlotCache(client=BrokenRedis())

    assert asyncio.run(cache.get(establishment_id, professional_id, service_id, MONDAY, NOW)) is None
    assert asyncio.run(cache.invalidate([(establishment_id, professional_id, MONDAY)])) == 0


def test_list_computed_before_a_write_is_not_served_after_it():
    establishment_id, professional_id, service_id = IDS
    cache = SlotCache(client=FakeRedis())

    async def scenario():
        # A reader starts computing, a write commits and invalidates, then the reader stores its list
        generation = await cache.current_generation(establishment_id, professional_id, MONDAY)
        await cache.invalidate([(establishment_id, professional_id, MONDAY)])
        await cache.set(establishment_id, professional_id, service_id, _availability(["09:00"]), generation)

        fresh_generation = await cache.current_generation(establishment_id, professional_id, MONDAY)
        return generation, fresh_generation, await cache.get(
            establishment_id, professional_id, service_id, MONDAY, NOW, fresh_generation
        )

    generation, fresh_generation, cached = asyncio.run(scenario())

    assert fresh_generation == generation + 1
    assert cached is None


def test_generation_read_failure_still_computes():
    establishment_id, professional_id, _ = IDS
    cache = SlotCache(client=BrokenRedis())

    assert asyncio.run(cache.current_generation(establishment_id, professional_id, MONDAY)) == 0
