"""
Snapshot Cache

Key/value store with TTL expiry used by the aggregation engine to hold the
latest snapshot between fetch cycles. Values are raw bytes (the engine
stores pydantic JSON); every key is prefixed with "funding:".

Backends:
    - InMemoryCache: process-local dict, expiry on a monotonic clock
    - RedisCache:    redis.asyncio client, SETEX + SCAN based pattern delete

Selection (create_cache):
    REDIS_HOST set   -> RedisCache
    REDIS_HOST empty -> InMemoryCache

Backend failures surface as CacheUnavailable; the engine decides whether to
fail open.

Usage:
    cache = create_cache(settings)
    await cache.set("current-rates", payload, ttl_seconds=30)
    payload = await cache.get("current-rates")
"""

import fnmatch
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from core.errors import CacheUnavailable
from core.logging import get_logger


CACHE_PREFIX = "funding:"

logger = get_logger(__name__)


class CacheStore(ABC):
    """
    Interface for snapshot caches.

    Keys passed in are unprefixed; implementations add CACHE_PREFIX.
    """

    prefix: str = CACHE_PREFIX

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store value, expiring after ttl_seconds."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted."""
        ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


# ============================================
# In-Memory Backend
# ============================================

class InMemoryCache(CacheStore):
    """
    Process-local cache.

    Expired entries are dropped lazily on access.
    """

    def __init__(self):
        self._data: Dict[str, Tuple[bytes, float]] = {}

    def _expired(self, expires_at: float) -> bool:
        return time.monotonic() >= expires_at

    async def get(self, key: str) -> Optional[bytes]:
        full_key = self._key(key)
        entry = self._data.get(full_key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._expired(expires_at):
            del self._data[full_key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._data[self._key(key)] = (value, time.monotonic() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._data.pop(self._key(key), None)

    async def delete_pattern(self, pattern: str) -> int:
        matches = [k for k in self._data if fnmatch.fnmatchcase(k, self._key(pattern))]
        for k in matches:
            del self._data[k]
        return len(matches)

    async def close(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


# ============================================
# Redis Backend
# ============================================

class RedisCache(CacheStore):
    """
    Redis-backed cache.

    Attributes:
        client: redis.asyncio.Redis instance (binary responses)
    """

    def __init__(self, host: str, port: int = 6379, db: int = 0, client: Optional[aioredis.Redis] = None):
        self.client = client or aioredis.Redis(host=host, port=port, db=db)
        logger.info(f"✓ Redis cache configured at {host}:{port}/{db}")

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self.client.get(self._key(key))
        except RedisError as e:
            raise CacheUnavailable(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            await self.client.setex(self._key(key), ttl_seconds, value)
        except RedisError as e:
            raise CacheUnavailable(f"Redis SETEX failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except RedisError as e:
            raise CacheUnavailable(f"Redis DEL failed: {e}") from e

    async def delete_pattern(self, pattern: str) -> int:
        try:
            keys = [k async for k in self.client.scan_iter(match=self._key(pattern))]
            if keys:
                await self.client.delete(*keys)
            return len(keys)
        except RedisError as e:
            raise CacheUnavailable(f"Redis pattern delete failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


def create_cache(settings) -> CacheStore:
    """Build the cache backend selected by settings.use_redis."""
    if settings.use_redis:
        return RedisCache(settings.redis_host, settings.redis_port, settings.redis_db)

    logger.info("✓ In-memory cache configured")
    return InMemoryCache()
