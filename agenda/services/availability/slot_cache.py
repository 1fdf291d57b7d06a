# ===== agenda/services/availability/slot_cache.py =====
"""
Short-lived Redis cache of computed slot lists for read endpoints.

Writes never read from here: the booking/reschedule transaction always
recomputes blocked intervals from the database. After a successful write the
API invalidates every (professional, day) the write touched.
"""
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID
import json
import logging

from agenda.config.redis import get_redis, RedisKeys
from agenda.config.settings import get_settings
from agenda.services.availability.availability_service import DayAvailability
from agenda.utils.timeutils import ensure_utc, get_zone

logger = logging.getLogger(__name__)


class SlotCache:
    """Read-through cache for DayAvailability results"""

    def __init__(self, client=None):
        self._client = client

    async def _redis(self):
        if self._client is None:
            self._client = await get_redis()
        return self._client

    @staticmethod
    def enabled() -> bool:
        return get_settings().SLOT_CACHE_ENABLED

    @staticmethod
    def _key(establishment_id, professional_id, target_date: date, service_id, generation: int = 0) -> str:
        return RedisKeys.SLOTS.format(
            establishment_id=establishment_id,
            professional_id=professional_id,
            date=target_date.isoformat(),
            generation=generation,
            service_id=service_id
        )

    @staticmethod
    def _index_key(establishment_id, professional_id, target_date: date) -> str:
        return RedisKeys.SLOTS_INDEX.format(
            establishment_id=establishment_id,
            professional_id=professional_id,
            date=target_date.isoformat()
        )

    @staticmethod
    def _generation_key(establishment_id, professional_id, target_date: date) -> str:
        return RedisKeys.SLOTS_GENERATION.format(
            establishment_id=establishment_id,
            professional_id=professional_id,
            date=target_date.isoformat()
        )

    async def current_generation(self, establishment_id: UUID, professional_id: UUID, target_date: date) -> int:
        """
        Read before computing a slot list and pass the value to get/set.

        A write that commits while the list is being computed bumps the
        generation, so the stale list lands under a key no reader uses.
        """
        if not self.enabled():
            return 0
        try:
            client = await self._redis()
            raw = await client.get(self._generation_key(establishment_id, professional_id, target_date))
        except Exception as e:
            logger.warning(f"Slot cache generation read failed: {e}")
            return 0
        return int(raw) if raw else 0

    async def get(
            self,
            establishment_id: UUID,
            professional_id: UUID,
            service_id: UUID,
            target_date: date,
            now: datetime,
            generation: int = 0
    ) -> Optional[DayAvailability]:
        if not self.enabled():
            return None
        try:
            client = await self._redis()
            raw = await client.get(self._key(establishment_id, professional_id, target_date, service_id, generation))
        except Exception as e:
            logger.warning(f"Slot cache read failed, computing instead: {e}")
            return None

        if not raw:
            return None

        data = json.loads(raw)
        availability = DayAvailability(
            date=date.fromisoformat(data["date"]),
            timezone=data["timezone"],
            duration_minutes=data["duration_minutes"],
            slots=data["slots"],
            closed=data["closed"]
        )
        availability.slots = self._drop_past(availability, now)
        return availability

    async def set(
            self,
            establishment_id: UUID,
            professional_id: UUID,
            service_id: UUID,
            availability: DayAvailability,
            generation: int = 0
    ) -> None:
        if not self.enabled():
            return
        settings = get_settings()
        ttl = settings.SLOT_CACHE_TTL_SECONDS
        key = self._key(establishment_id, professional_id, availability.date, service_id, generation)
        index_key = self._index_key(establishment_id, professional_id, availability.date)
        generation_key = self._generation_key(establishment_id, professional_id, availability.date)
        try:
            client = await self._redis()
            await client.set(key, json.dumps(availability.to_dict()), ex=ttl)
            await client.sadd(index_key, key)
            await client.expire(index_key, ttl)
            # Outlives every entry written under it, so it never resets while one is readable
            await client.expire(generation_key, ttl)
        except Exception as e:
            logger.warning(f"Slot cache write failed: {e}")

    async def invalidate(self, affected_days: Iterable[Tuple[UUID, UUID, date]]) -> int:
        """Drop cached slot lists for each (establishment, professional, day)"""
        if not self.enabled():
            return 0
        ttl = get_settings().SLOT_CACHE_TTL_SECONDS
        removed = 0
        try:
            client = await self._redis()
            for establishment_id, professional_id, target_date in affected_days:
                generation_key = self._generation_key(establishment_id, professional_id, target_date)
                await client.incr(generation_key)
                await client.expire(generation_key, ttl)

                index_key = self._index_key(establishment_id, professional_id, target_date)
                keys = await client.smembers(index_key)
                if keys:
                    removed += await client.delete(*keys)
                await client.delete(index_key)
        except Exception as e:
            logger.error(f"Slot cache invalidation failed: {e}")
        return removed

    @staticmethod
    def _drop_past(availability: DayAvailability, now: datetime) -> List[str]:
        """Cached lists were computed earlier; hide slots that have started since"""
        local_now = ensure_utc(now).astimezone(get_zone(availability.timezone))
        if availability.date < local_now.date():
            return []
        if availability.date > local_now.date():
            return availability.slots
        current = local_now.strftime("%H:%M")
        return [slot for slot in availability.slots if slot > current]
