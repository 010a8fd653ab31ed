"""
Unit Tests for the Snapshot Cache

Run with:
    pytest tests/unit/test_cache.py -v
"""

import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.config import Settings
from core.errors import CacheUnavailable
from storage.cache import CACHE_PREFIX, InMemoryCache, RedisCache, create_cache


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.ttls = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys):
        self._check()
        for key in keys:
            self.data.pop(key, None)

    async def scan_iter(self, match=None):
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


class TestInMemoryCache:

    @pytest.mark.asyncio
    async def test_set_get(self):
        cache = InMemoryCache()
        await cache.set("current-rates", b"payload", 30)
        assert await cache.get("current-rates") == b"payload"
        assert await cache.get("other") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss(self):
        cache = InMemoryCache()
        await cache.set("current-rates", b"payload", 0)
        assert await cache.get("current-rates") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_keys_are_prefixed(self):
        cache = InMemoryCache()
        await cache.set("k", b"v", 30)
        assert f"{CACHE_PREFIX}k" in cache._data

    @pytest.mark.asyncio
    async def test_delete_and_pattern(self):
        cache = InMemoryCache()
        await cache.set("rates:dydx", b"1", 30)
        await cache.set("rates:gmx", b"2", 30)
        await cache.set("status", b"3", 30)

        assert await cache.delete_pattern("rates:*") == 2
        await cache.delete("status")

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_ping(self):
        assert await InMemoryCache().ping() is True


class TestRedisCache:

    @pytest.mark.asyncio
    async def test_setex_with_prefix(self):
        fake = FakeRedis()
        cache = RedisCache("localhost", client=fake)

        await cache.set("current-rates", b"x", 30)

        assert fake.data == {"funding:current-rates": b"x"}
        assert fake.ttls["funding:current-rates"] == 30
        assert await cache.get("current-rates") == b"x"

    @pytest.mark.asyncio
    async def test_delete_pattern(self):
        fake = FakeRedis()
        cache = RedisCache("localhost", client=fake)
        await cache.set("a:1", b"1", 30)
        await cache.set("a:2", b"2", 30)
        await cache.set("b", b"3", 30)

        assert await cache.delete_pattern("a:*") == 2
        assert list(fake.data) == ["funding:b"]

    @pytest.mark.asyncio
    async def test_errors_become_cache_unavailable(self):
        cache = RedisCache("localhost", client=FakeRedis(fail=True))

        with pytest.raises(CacheUnavailable):
            await cache.get("k")
        with pytest.raises(CacheUnavailable):
            await cache.set("k", b"v", 1)
        with pytest.raises(CacheUnavailable):
            await cache.delete_pattern("*")

    @pytest.mark.asyncio
    async def test_ping_reports_false_on_error(self):
        assert await RedisCache("localhost", client=FakeRedis(fail=True)).ping() is False

    @pytest.mark.asyncio
    async def test_close(self):
        fake = FakeRedis()
        await RedisCache("localhost", client=fake).close()
        assert fake.closed is True


class TestCreateCache:

    def test_in_memory_without_host(self):
        assert isinstance(create_cache(Settings(redis_host="")), InMemoryCache)

    def test_redis_with_host(self):
        assert isinstance(create_cache(Settings(redis_host="localhost")), RedisCache)
