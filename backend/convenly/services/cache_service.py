"""
Redis caching for event listings.

CACHING STRATEGY
================

What we cache:
  - Serialized `GET /events` responses, one key per canonical filter
  - Key pattern: "events:list:{EventFilter.cache_key()}"

Invalidation:
  - On event creation and deletion: delete every "events:list:*" key, once the
    change has committed
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)
  - Attendance changes do not touch listings, so they do not invalidate

The cache is best-effort. Redis errors are logged and the request falls through to
the database; a missing Redis means the service runs uncached.
"""

import json
from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.core.config import Settings
from convenly.core.metrics import record_cache_operation
from convenly.domain.filters import EventFilter

EVENT_LIST_PREFIX = "events:list:"


def make_event_list_key(event_filter: EventFilter) -> str:
    return f"{EVENT_LIST_PREFIX}{event_filter.cache_key()}"


async def connect_redis(settings: Settings, logger: structlog.stdlib.BoundLogger) -> Optional[redis.Redis]:
    """Open the Redis connection. Returns None if Redis is disabled or unreachable."""
    if not settings.REDIS_ENABLED:
        return None

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error("redis_connection_failed", error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    return client


class EventListCache:
    def __init__(self, client: redis.Redis, ttl: int, logger: structlog.stdlib.BoundLogger):
        self.client = client
        self.ttl = ttl
        self.logger = logger

    async def get(self, event_filter: EventFilter) -> Optional[dict]:
        key = make_event_list_key(event_filter)
        try:
            data = await self.client.get(key)
        except RedisError as e:
            record_cache_operation("get", "error")
            self.logger.error("cache_get_error", key=key, error=str(e))
            return None

        if data:
            record_cache_operation("get", "hit")
            self.logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", "miss")
        self.logger.debug("cache_miss", key=key)
        return None

    async def set(self, event_filter: EventFilter, payload: dict) -> None:
        key = make_event_list_key(event_filter)
        try:
            await self.client.setex(key, self.ttl, json.dumps(payload, default=str))
        except RedisError as e:
            record_cache_operation("set", "error")
            self.logger.error("cache_set_error", key=key, error=str(e))
            return
        record_cache_operation("set", "success")
        self.logger.debug("cache_set", key=key, ttl=self.ttl)

    async def invalidate(self) -> None:
        """Delete all cached listings; SCAN keeps Redis responsive while doing it."""
        try:
            deleted = 0
            async for key in self.client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100):
                await self.client.delete(key)
                deleted += 1
        except RedisError as e:
            record_cache_operation("invalidate", "error")
            self.logger.error("cache_invalidation_error", error=str(e))
            return
        record_cache_operation("invalidate", "success")
        self.logger.info("cache_invalidated", keys_deleted=deleted)

    async def invalidate_after_commit(self, db: AsyncSession) -> None:
        """
        Commit the request's transaction, then drop cached listings.

        A listing read that misses the cache after this point loads the committed
        rows. If the commit fails, nothing is invalidated and the error propagates.
        """
        await db.commit()
        await self.invalidate()

    async def stats(self) -> dict:
        try:
            info = await self.client.info("stats")
        except RedisError as e:
            return {"status": "error", "error": str(e)}
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
