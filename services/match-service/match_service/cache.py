import fnmatch
import json
import time
from typing import Any, Awaitable, Callable

from loguru import logger

from .cache_keys import city_key_pattern

SCAN_BATCH = 100
MEMORY_MAX_ENTRIES = 1000


class RedisCache:
    """
    JSON values in Redis with per-key TTL.
    """

    def __init__(self, redis_client):
        self.redis = redis_client

    async def get(self, key: str) -> Any | None:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self.redis.set(key, json.dumps(value, separators=(",", ":")), ex=ttl_seconds)

    async def cached(self, key: str, compute: Callable[[], Awaitable[Any]], ttl_seconds: int) -> Any:
        hit = await self.get(key)
        if hit is not None:
            logger.debug("cache hit {}", key)
            return hit

        logger.debug("cache miss {}", key)
        value = await compute()
        await self.set(key, value, ttl_seconds)
        return value

    async def delete_pattern(self, pattern: str) -> int:
        """
        SCAN (never KEYS) and delete in batches. Returns keys deleted.
        """
        deleted = 0
        batch = []
        async for key in self.redis.scan_iter(match=pattern, count=SCAN_BATCH):
            batch.append(key)
            if len(batch) >= SCAN_BATCH:
                deleted += await self.redis.delete(*batch)
                batch = []
        if batch:
            deleted += await self.redis.delete(*batch)
        return deleted

    async def delete(self, key: str) -> None:
        await self.redis.delete(key)

    async def add_once(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self.redis.set(key, "1", ex=ttl_seconds, nx=True))

    async def close(self) -> None:
        await self.redis.aclose()


class MemoryCache:
    """
    In-process stand-in for RedisCache, used when no REDIS_URL is configured.
    Values are stored JSON-encoded so hits return fresh copies.

    Holds at most max_entries keys: expired entries are purged on write once the
    limit is reached, then the oldest writes are evicted.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = MEMORY_MAX_ENTRIES):
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, tuple[str, float]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        raw, expires = entry
        if expires <= self._clock():
            del self._entries[key]
            return None
        return raw

    def _put(self, key: str, raw: str, ttl_seconds: int) -> None:
        # re-insert so dict order stays oldest-write first
        self._entries.pop(key, None)
        if len(self._entries) >= self._max_entries:
            self._purge()
        self._entries[key] = (raw, self._clock() + ttl_seconds)

    def _purge(self) -> None:
        now = self._clock()
        expired = [k for k, (_, expires) in self._entries.items() if expires <= now]
        for k in expired:
            del self._entries[k]

        overflow = len(self._entries) - self._max_entries + 1
        if overflow > 0:
            for k in list(self._entries)[:overflow]:
                del self._entries[k]
            logger.debug("memory cache full, evicted {} oldest entries", overflow)

    async def get(self, key: str) -> Any | None:
        raw = self._live(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._put(key, json.dumps(value), ttl_seconds)

    async def cached(self, key: str, compute: Callable[[], Awaitable[Any]], ttl_seconds: int) -> Any:
        hit = await self.get(key)
        if hit is not None:
            logger.debug("cache hit {}", key)
            return hit

        logger.debug("cache miss {}", key)
        value = await compute()
        await self.set(key, value, ttl_seconds)
        return value

    async def delete_pattern(self, pattern: str) -> int:
        keys = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
        for k in keys:
            del self._entries[k]
        return len(keys)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def add_once(self, key: str, ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        self._put(key, "1", ttl_seconds)
        return True

    async def close(self) -> None:
        self._entries.clear()


async def invalidate_city(cache, city) -> int:
    """Drop every cached candidate list for a city, whatever the preferences."""
    deleted = await cache.delete_pattern(city_key_pattern(city))
    logger.info("invalidated {} candidate cache entries for city={}", deleted, city)
    return deleted
