"""Result caches keyed by GenerationRequest.cache_key()."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from typing import Protocol

from redis.asyncio import ConnectionPool, Redis

from .config import Settings, settings
from .models import RawResult

logger = logging.getLogger(__name__)


class ResultCache(Protocol):
    async def get(self, key: str) -> list[RawResult] | None: ...

    async def set(self, key: str, results: Sequence[RawResult]) -> None: ...


class InMemoryResultCache:
    """Process-local TTL cache. Last writer wins."""

    def __init__(self, ttl_seconds: float = 600, *, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, list[RawResult]]] = {}

    async def get(self, key: str) -> list[RawResult] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, results = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return list(results)

    async def set(self, key: str, results: Sequence[RawResult]) -> None:
        self._entries[key] = (self._clock() + self._ttl, list(results))
        self._evict_expired()

    def _evict_expired(self) -> None:
        now = self._clock()
        for key in [k for k, (exp, _) in self._entries.items() if now >= exp]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class RedisResultCache:
    """Shared cache storing result lists as JSON with a Redis TTL."""

    def __init__(self, redis: Redis, ttl_seconds: int = 600) -> None:
        self._redis = redis
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 600) -> RedisResultCache:
        pool = ConnectionPool.from_url(url, max_connections=20, decode_responses=True)
        return cls(Redis(connection_pool=pool), ttl_seconds=ttl_seconds)

    async def get(self, key: str) -> list[RawResult] | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        try:
            return [RawResult.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable cache entry %s", key)
            return None

    async def set(self, key: str, results: Sequence[RawResult]) -> None:
        payload = json.dumps([r.to_dict() for r in results])
        await self._redis.set(key, payload, ex=self._ttl)


def build_result_cache(config: Settings | None = None) -> ResultCache | None:
    """Cache selected by settings, or None when caching is disabled."""
    config = config or settings
    if not config.cache_enabled:
        return None
    if config.cache_backend == "redis":
        return RedisResultCache.from_url(config.redis_url, ttl_seconds=config.cache_ttl_seconds)
    return InMemoryResultCache(ttl_seconds=config.cache_ttl_seconds)
