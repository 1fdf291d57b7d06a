# agenda/config/redis.py
"""Redis configuration and connection setup"""
import redis.asyncio as redis
from typing import Optional

from agenda.config.settings import get_settings

settings = get_settings()

# Redis connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Get or create Redis connection pool"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
            socket_connect_timeout=1,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """Get Redis client from pool"""
    pool = get_redis_pool()
    return redis.Redis(connection_pool=pool)


# Redis key patterns for different data types
class RedisKeys:
    """Redis key patterns for consistent naming"""

    # Computed slot lists, one key per (professional, day, generation, service)
    SLOTS = "slots:{establishment_id}:{professional_id}:{date}:{generation}:{service_id}"
    # Bumped on every invalidation so lists computed before a write are never read back
    SLOTS_GENERATION = "slots-gen:{establishment_id}:{professional_id}:{date}"
    # Set of SLOTS keys written for one (professional, day), used for invalidation
    SLOTS_INDEX = "slots-index:{establishment_id}:{professional_id}:{date}"
