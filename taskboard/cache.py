import json
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from taskboard.config import settings
from taskboard.exceptions import InternalError

logger = logging.getLogger(__name__)

TASKS = "tasks"
COMMENTS = "comments"
USERS = "users"

_GENERATION_PREFIX = "__generation__"


def _format_arg(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def make_key(namespace: str, generation: int, operation: str, *args: Any) -> str:
    """Build ``namespace:generation:operation:arg1:arg2...``."""
    parts = [namespace, str(generation), operation, *(_format_arg(a) for a in args)]
    return ":".join(parts)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class MemoryBackend:
    """Process-local backend.  Used when no Redis URL is configured and in tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}
        self._clock = clock

    async def ping(self) -> None:
        return None

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    async def incr(self, key: str) -> int:
        current = int((await self.get(key)) or 0) + 1
        self._data[key] = (str(current), None)
        return current

    async def delete_prefix(self, prefix: str) -> int:
        keys = [k for k in self._data if k.startswith(prefix)]
        for key in keys:
            del self._data[key]
        return len(keys)

    async def close(self) -> None:
        self._data.clear()


class RedisBackend:
    """Redis backend built on ``redis.asyncio``."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._redis: redis.Redis = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    async def ping(self) -> None:
        await self._redis.ping()
        logger.info("Redis connected: %s", self._url)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        await self._redis.set(key, value, ex=ttl or None)

    async def incr(self, key: str) -> int:
        return await self._redis.incr(key)

    async def delete_prefix(self, prefix: str) -> int:
        # SCAN avoids blocking the server the way KEYS would.
        keys: list[str] = []
        async for key in self._redis.scan_iter(match=f"{prefix}*"):
            keys.append(key)
        if keys:
            await self._redis.delete(*keys)
        return len(keys)

    async def close(self) -> None:
        await self._redis.aclose()


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class CacheManager:
    """
    Read-through cache with whole-namespace eviction.

    Every entry belongs to a namespace (one per entity kind).  A write to an
    entity kind evicts the whole namespace; list argument tuples are too
    varied to target individual keys.

    Each namespace also carries a generation counter that is part of every
    key.  Writers bump the counter before their transaction commits and evict
    again afterwards.  A read whose load overlapped a bump does not store its
    value, and anything stored under an older generation is never asked for.

    Backend failures are raised as ``InternalError``; the cache never hides a
    failure from the caller.
    """

    def __init__(self, backend: MemoryBackend | RedisBackend | None = None, ttl: int | None = None) -> None:
        self._backend = backend or MemoryBackend()
        self._ttl = ttl if ttl is not None else settings.CACHE_TTL
        self._hits: int = 0
        self._misses: int = 0

    @classmethod
    def from_settings(cls) -> "CacheManager":
        if settings.REDIS_URL:
            return cls(RedisBackend(settings.REDIS_URL))
        return cls(MemoryBackend())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Verify the backend is reachable.  Called once at application startup."""
        try:
            await self._backend.ping()
        except RedisError as exc:
            raise InternalError(f"Cache backend unavailable: {exc}") from exc

    async def disconnect(self) -> None:
        """Release the backend.  Called once at application shutdown."""
        await self._backend.close()

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def _generation(self, namespace: str) -> int:
        raw = await self._backend.get(f"{_GENERATION_PREFIX}:{namespace}")
        return int(raw) if raw else 0

    async def get_or_load(
        self,
        namespace: str,
        operation: str,
        args: tuple,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value for ``(namespace, operation, args)`` or await
        *loader*, store its result and return it.

        Nothing is stored when *loader* raises, or when the namespace was
        invalidated while *loader* ran.
        """
        try:
            generation = await self._generation(namespace)
            key = make_key(namespace, generation, operation, *args)
            data = await self._backend.get(key)
        except RedisError as exc:
            raise InternalError(f"Cache read failed: {exc}") from exc

        if data is not None:
            self._hits += 1
            logger.debug("Cache hit %s", key)
            return json.loads(data)

        self._misses += 1
        value = await loader()
        try:
            if await self._generation(namespace) != generation:
                logger.debug("Namespace %r invalidated during load; not storing %s", namespace, key)
                return value
            await self._backend.set(key, json.dumps(value, default=str), ttl=self._ttl)
        except RedisError as exc:
            raise InternalError(f"Cache write failed: {exc}") from exc
        return value

    async def invalidate(self, *namespaces: str) -> None:
        """Evict every entry of each namespace, regardless of operation or arguments."""
        for namespace in namespaces:
            try:
                await self._backend.incr(f"{_GENERATION_PREFIX}:{namespace}")
                removed = await self._backend.delete_prefix(f"{namespace}:")
            except RedisError as exc:
                raise InternalError(f"Cache invalidation failed: {exc}") from exc
            logger.debug("Cache invalidated %d key(s) in namespace %r", removed, namespace)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for the metrics endpoint."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Application-wide instance; request handlers obtain it through ``get_cache``.
cache = CacheManager.from_settings()
