"""
Redis caching service for capacity snapshots.

CACHING STRATEGY
================

What we cache:
  - Per-(session, date) capacity snapshots served by the capacity endpoint
  - Cache key pattern: "capacity:{session_id}:{YYYY-MM-DD}"

Why:
  - Guests poll "how many spots are left" far more often than they buy
  - The snapshot is an aggregate over reservation rows, so each uncached read
    is a SUM query against PostgreSQL

Invalidation strategy:
  - After every committed ticket, reschedule or cancellation the ledger
    deletes the key for each affected date
  - Each invalidation also bumps "capacity:gen:{session_id}:{YYYY-MM-DD}".
    A fill carries the generation read before counting and is dropped if a
    commit bumped it meanwhile (WATCH/MULTI), so a count taken before a
    sale cannot be cached after that sale's invalidation
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

What is NOT served from cache:
  - The capacity check itself. check_and_reserve always aggregates inside its
    atomic unit; a stale snapshot can only mislead a display, never admit an
    extra guest.

Every Redis failure degrades to a cache miss.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from resort.core.config import get_settings
from resort.core.logging import get_logger
from resort.core.metrics import record_cache_operation, redis_connection_errors
from resort.engine.types import CapacitySnapshot

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None

# Outlives any snapshot TTL so a stale fill always sees the bump
GENERATION_TTL = 86400


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
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def _make_snapshot_key(session_id: int, day: date) -> str:
    return f"capacity:{session_id}:{day.isoformat()}"


def _make_generation_key(session_id: int, day: date) -> str:
    return f"capacity:gen:{session_id}:{day.isoformat()}"


def _encode(snapshot: CapacitySnapshot) -> str:
    return json.dumps({
        "session_id": snapshot.session_id,
        "day": snapshot.day.isoformat(),
        "max_capacity": snapshot.max_capacity,
        "sold": snapshot.sold,
        "admitted": snapshot.admitted,
    })


def _decode(data: str) -> CapacitySnapshot:
    raw = json.loads(data)
    return CapacitySnapshot(
        session_id=raw["session_id"],
        day=date.fromisoformat(raw["day"]),
        max_capacity=raw["max_capacity"],
        sold=raw["sold"],
        admitted=raw["admitted"],
    )


class SnapshotCache:
    """Capacity snapshot cache handed to the CapacityLedger."""

    def __init__(self, ttl: Optional[int] = None) -> None:
        self._ttl = ttl or settings.REDIS_CACHE_TTL

    async def get(self, session_id: int, day: date) -> Optional[CapacitySnapshot]:
        client = await get_redis()
        if not client:
            return None

        key = _make_snapshot_key(session_id, day)
        try:
            data = await client.get(key)
            if data:
                record_cache_operation("get", hit=True)
                logger.debug("cache_hit", key=key)
                return _decode(data)
            record_cache_operation("get", hit=False)
            logger.debug("cache_miss", key=key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))

        return None

    async def generation(self, session_id: int, day: date) -> Optional[int]:
        """Current write generation of the date, or None when Redis cannot say."""
        client = await get_redis()
        if not client:
            return None

        key = _make_generation_key(session_id, day)
        try:
            return int(await client.get(key) or 0)
        except Exception as e:
            logger.error("cache_generation_error", key=key, error=str(e))
            return None

    async def set(self, snapshot: CapacitySnapshot, generation: Optional[int]) -> None:
        """
        Store a snapshot counted at ``generation``.

        Skipped when a commit bumped the generation since, or when the
        generation is unknown.
        """
        if generation is None:
            return
        client = await get_redis()
        if not client:
            return

        key = _make_snapshot_key(snapshot.session_id, snapshot.day)
        gen_key = _make_generation_key(snapshot.session_id, snapshot.day)
        try:
            async with client.pipeline(transaction=True) as pipe:
                await pipe.watch(gen_key)
                if int(await pipe.get(gen_key) or 0) != generation:
                    logger.debug("cache_set_skipped", key=key, generation=generation)
                    return
                pipe.multi()
                pipe.setex(key, self._ttl, _encode(snapshot))
                await pipe.execute()
            logger.debug("cache_set", key=key, ttl=self._ttl, generation=generation)
        except WatchError:
            logger.debug("cache_set_skipped", key=key, generation=generation)
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))

    async def invalidate(self, session_id: int, day: date) -> None:
        client = await get_redis()
        if not client:
            return

        key = _make_snapshot_key(session_id, day)
        gen_key = _make_generation_key(session_id, day)
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.incr(gen_key)
                pipe.expire(gen_key, GENERATION_TTL)
                pipe.delete(key)
                await pipe.execute()
            logger.debug("cache_invalidated", key=key)
        except Exception as e:
            logger.error("cache_invalidation_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "hit_rate": (
                round(
                    info.get("keyspace_hits", 0)
                    / max(info.get("keyspace_hits", 0) + info.get("keyspace_misses", 0), 1)
                    * 100,
                    2,
                )
            ),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
