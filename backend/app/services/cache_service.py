"""
Redis caching service for ride search results.

CACHING STRATEGY
================

What we cache:
  - `/search-rides` responses (JSON-serialized list of ride summaries)
  - Key pattern: "rides:search:date={date}&dest={destination}", destination exactly as queried

Invalidation strategy:
  - Any change to which rides have free seats deletes every search key:
    posting a ride, accepting a booking, cancelling an accepted booking
  - TTL-based expiry as safety net
  - A generation counter is bumped before keys are deleted. A search only
    writes its result back if the generation it read before querying the
    database is still current, so a result computed before a seat change
    can never be stored after that change invalidated the cache

  All search keys share the "rides:search:" prefix so we can SCAN and delete them.

The cache is advisory only. Seat counts used by the booking lifecycle are
always read from and written to the database; a stale search result can at
worst show a ride whose last seat was just taken, and accepting against it
is still rejected by the guarded seat decrement.

Every Redis failure is logged and treated as a miss (fail open).
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import WatchError
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

SEARCH_KEY_PREFIX = "rides:search:"
SEARCH_GENERATION_KEY = "rides:search-generation"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
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
        await _redis_client.aclose()
        _redis_client = None


def make_search_key(destination: Optional[str], ride_date: date) -> str:
    # The database match decides case and whitespace handling, so the key keeps the raw query
    return f"{SEARCH_KEY_PREFIX}date={ride_date.isoformat()}&dest={destination or ''}"


async def get_search_generation() -> Optional[int]:
    """Current invalidation generation, or None when the cache is unavailable."""
    client = await get_redis()
    if not client:
        return None

    try:
        value = await client.get(SEARCH_GENERATION_KEY)
        return int(value or 0)
    except Exception as e:
        logger.error("cache_generation_error", error=str(e))
        return None


async def get_cached_search(destination: Optional[str], ride_date: date) -> Optional[list]:
    """Retrieve a cached search result."""
    client = await get_redis()
    if not client:
        return None

    key = make_search_key(destination, ride_date)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_search(
    destination: Optional[str],
    ride_date: date,
    rides: list,
    generation: Optional[int],
) -> bool:
    """
    Cache a search result with TTL, but only if no invalidation happened since
    `generation` was read. WATCH makes the check and the write atomic.
    Returns True when the result was stored.
    """
    if generation is None:
        return False

    client = await get_redis()
    if not client:
        return False

    key = make_search_key(destination, ride_date)
    try:
        async with client.pipeline(transaction=True) as pipe:
            await pipe.watch(SEARCH_GENERATION_KEY)
            current = int(await pipe.get(SEARCH_GENERATION_KEY) or 0)
            if current != generation:
                await pipe.unwatch()
                logger.debug("cache_set_skipped_stale", key=key, read=generation, current=current)
                return False
            pipe.multi()
            pipe.setex(key, settings.REDIS_CACHE_TTL, json.dumps(rides, default=str))
            await pipe.execute()
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
        return True
    except WatchError:
        logger.debug("cache_set_skipped_stale", key=key, read=generation)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))
    return False


async def invalidate_search_cache() -> None:
    """
    Invalidate all cached ride searches.
    Bumps the generation first so in-flight searches cannot write back,
    then uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        await client.incr(SEARCH_GENERATION_KEY)
        deleted = 0
        async for key in client.scan_iter(match=f"{SEARCH_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


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
        logger.error("cache_stats_error", error=str(e))
        return {"status": "error"}
