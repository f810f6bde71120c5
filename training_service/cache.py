"""Redis-backed snapshot cache shared by all sessions of the service."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class CacheMetrics:
    """Container for cache metric counters (prometheus Counter objects)."""

    hits: Any = None
    misses: Any = None
    errors: Any = None

    def inc_hit(self) -> None:
        if self.hits:
            self.hits.inc()

    def inc_miss(self) -> None:
        if self.misses:
            self.misses.inc()

    def inc_error(self) -> None:
        if self.errors:
            self.errors.inc()


class SnapshotCache:
    """
    Stores serialized snapshots under string keys.

    A missing Redis connection behaves like a permanent miss; every Redis
    failure is logged and counted, never raised to the caller.
    """

    def __init__(
        self,
        get_redis: Callable[[], Awaitable[Any]],
        metrics: CacheMetrics | None = None,
        default_ttl: int = 300,
    ):
        self._get_redis = get_redis
        self._metrics = metrics or CacheMetrics()
        self._default_ttl = default_ttl

    async def get(self, key: str) -> str | None:
        redis = await self._get_redis()
        if not redis:
            return None
        try:
            if cached := await redis.get(key):
                self._metrics.inc_hit()
                return cached
            self._metrics.inc_miss()
        except Exception:
            self._metrics.inc_error()
            logger.warning("cache_get_failed", key=key, exc_info=True)
        return None

    async def set(self, key: str, payload: str, ttl: int | None = None) -> None:
        redis = await self._get_redis()
        if not redis:
            return
        try:
            await redis.set(key, payload, ex=ttl or self._default_ttl)
        except Exception:
            self._metrics.inc_error()
            logger.warning("cache_set_failed", key=key, exc_info=True)

    async def delete(self, key: str) -> None:
        redis = await self._get_redis()
        if not redis:
            return
        try:
            await redis.delete(key)
        except Exception:
            self._metrics.inc_error()
            logger.warning("cache_delete_failed", key=key, exc_info=True)
