import json

import pytest

from quorum.cache import InMemoryResultCache, RedisResultCache, build_result_cache
from quorum.models import RawResult, ResultStatus


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value
        self.expiry[key] = ex


def _result(text: str) -> RawResult:
    return RawResult(provider="openai", model="gpt-4o", status=ResultStatus.OK, text=text)


@pytest.mark.asyncio
async def test_in_memory_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = InMemoryResultCache(ttl_seconds=10, clock=clock)

    await cache.set("k", [_result("a")])
    clock.now += 9
    hit = await cache.get("k")
    clock.now += 1
    miss = await cache.get("k")

    assert hit is not None and hit[0].text == "a"
    assert miss is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_in_memory_cache_last_writer_wins() -> None:
    cache = InMemoryResultCache(ttl_seconds=10, clock=FakeClock())

    await cache.set("k", [_result("first")])
    await cache.set("k", [_result("second")])

    cached = await cache.get("k")
    assert cached is not None
    assert [r.text for r in cached] == ["second"]


@pytest.mark.asyncio
async def test_redis_cache_round_trip_with_ttl() -> None:
    redis = FakeRedis()
    cache = RedisResultCache(redis, ttl_seconds=30)
    failed = RawResult.failure("anthropic", "claude-3-haiku-20240307", "boom")

    await cache.set("k", [_result("a"), failed])
    cached = await cache.get("k")

    assert redis.expiry["k"] == 30
    assert json.loads(redis.store["k"])[1]["status"] == "error"
    assert cached == [_result("a"), failed]
    assert await cache.get("missing") is None


@pytest.mark.asyncio
async def test_redis_cache_discards_unreadable_entries() -> None:
    redis = FakeRedis()
    redis.store["k"] = "not json"

    assert await RedisResultCache(redis).get("k") is None


def test_build_result_cache(test_settings) -> None:
    assert build_result_cache(test_settings) is None

    test_settings.cache_enabled = True
    assert isinstance(build_result_cache(test_settings), InMemoryResultCache)

    test_settings.cache_backend = "redis"
    assert isinstance(build_result_cache(test_settings), RedisResultCache)
