"""
Redis caching for schedule metadata.

CACHING STRATEGY
================

What we cache:
  - Schedule summaries (price, departure/arrival, capacity), JSON-serialized
  - Cache key pattern: "schedules:summary:{schedule_id}"

Why:
  - Schedules are immutable for the booking engine; they are edited only by
    the external scheduling tooling
  - The seat map page asks for the same schedule on every refresh

What we never cache:
  - Seat occupancy. It is derived live from confirmed bookings on every call;
    a stale occupancy view would let the UI offer seats that are gone
  - Anything the seat claim or payment validation reads. Those always hit the
    database so correctness never depends on Redis

Failure policy:
  - Redis errors are logged and treated as a miss; the database stays
    authoritative. TTL is a safety net for schedule edits made upstream.
"""

import json
from typing import Optional

import redis.asyncio as redis

from booking_engine.core.config import get_settings
from booking_engine.core.logging import get_logger
from booking_engine.core.metrics import cache_operations, record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_schedule_key(schedule_id: int) -> str:
    return f"schedules:summary:{schedule_id}"


async def get_cached_schedule(schedule_id: int) -> Optional[dict]:
    """Retrieve a cached schedule summary."""
    client = await get_redis()
    if not client:
        return None

    key = _make_schedule_key(schedule_id)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        cache_operations.labels(operation="get", result="error").inc()
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_schedule(schedule_id: int, data: dict) -> None:
    """Cache a schedule summary with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_schedule_key(schedule_id)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        cache_operations.labels(operation="set", result="ok").inc()
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        cache_operations.labels(operation="set", result="error").inc()
        logger.error("cache_set_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
