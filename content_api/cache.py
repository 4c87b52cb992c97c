"""
Redis cache-aside layer for public reads.

Keys are namespaced ``<CACHE_PREFIX>:<collection>:...`` so a collection's
entries can be purged with one SCAN pattern after any mutation.  Redis is
optional: with no connection every read misses and every write is skipped,
and Redis errors are logged at debug level instead of reaching the caller.
"""
import json
import logging
from typing import Awaitable, Callable

import redis.asyncio as redis

from content_api.config import settings

logger = logging.getLogger(__name__)

Cached = dict | list


class CacheManager:
    def __init__(self, prefix: str = settings.CACHE_PREFIX) -> None:
        self.prefix = prefix
        self._redis: redis.Redis | None = None
        self._hits = 0
        self._misses = 0

    async def connect(self) -> None:
        """Open the pool at startup; a failed ping leaves the cache disabled."""
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except Exception as exc:
            logger.warning("Redis at %s unreachable, caching disabled: %s", settings.REDIS_URL, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Redis connected: %s", settings.REDIS_URL)

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    async def get(self, key: str) -> Cached | None:
        if self._redis is None:
            self._misses += 1
            return None
        try:
            raw = await self._redis.get(self._key(key))
        except Exception as exc:
            logger.debug("Cache GET %r failed: %s", key, exc)
            raw = None
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: Cached, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(self._key(key), json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET %r failed: %s", key, exc)

    async def remember(
        self, key: str, ttl: int, loader: Callable[[], Awaitable[Cached]]
    ) -> Cached:
        """Return the cached value for *key*, or load, store and return it."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        await self.set(key, value, ttl=ttl)
        return value

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching *pattern* with SCAN; returns how many went."""
        if self._redis is None:
            return 0
        try:
            keys = [key async for key in self._redis.scan_iter(match=self._key(pattern))]
            if keys:
                await self._redis.delete(*keys)
        except Exception as exc:
            logger.debug("Cache purge %r failed: %s", pattern, exc)
            return 0
        logger.debug("Cache purged %d key(s) for %r", len(keys), pattern)
        return len(keys)

    @staticmethod
    def list_key(collection: str, fingerprint: str) -> str:
        return f"{collection}:list:{fingerprint}"

    async def invalidate_collection(self, collection: str) -> None:
        # Any mutation can move an entity in or out of any public page.
        await self.delete_pattern(f"{collection}:*")

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "connected": self.connected,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total else 0.0,
        }


cache = CacheManager()
