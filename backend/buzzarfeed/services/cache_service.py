"""Cache Service.

Redis-based caching for hot public reads (stall details, category list).
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)

from ..core.config import settings
from ..core.constants import Cache
from ..core.logging import get_logger
from ..core.metrics import (
    cache_connection_status,
    cache_errors_total,
    cache_hits_total,
    cache_misses_total,
)
from ..utils import generate_cache_key, safe_json_dumps, safe_json_loads

logger = get_logger(__name__)


class CacheService:
    """Redis cache service.

    Caching strategy:
    - Stall detail: formatted stall payload (5 min TTL)
    - Categories: list of categories in use (10 min TTL)
    - Invalidation: on any stall edit, rating recompute, approval or deletion

    Error handling:
    - Disabled entirely when CACHE_ENABLED is false
    - After a failed connection, reconnects are not attempted for
      RECONNECT_BACKOFF_SECONDS so a Redis outage does not slow every request
    - Every failure degrades to a cache miss
    """

    RECONNECT_BACKOFF_SECONDS = 30

    def __init__(self):
        self.redis: aioredis.Redis | None = None
        self._connected = False
        self._retry_after = 0.0

    @property
    def enabled(self) -> bool:
        return settings.CACHE_ENABLED

    async def connect(self):
        """Establish Redis connection."""
        if self._connected:
            return

        try:
            self.redis = aioredis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=1
            )
            await self.redis.ping()
            self._connected = True
            cache_connection_status.set(1)
            logger.info("Cache service connected to Redis")
        except Exception as e:
            self._connected = False
            self._retry_after = time.monotonic() + self.RECONNECT_BACKOFF_SECONDS
            cache_connection_status.set(0)
            cache_errors_total.labels(operation='connect', error_type=self._classify_error(e)).inc()
            logger.warning(
                "Failed to connect to Redis, continuing without cache",
                extra={'error': str(e)}
            )
            raise

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis and self._connected:
            try:
                await self.redis.aclose()
            except Exception as e:
                logger.warning("Error disconnecting from Redis", extra={'error': str(e)})
            finally:
                self._connected = False
                cache_connection_status.set(0)

    async def _ensure_connected(self) -> bool:
        if not self.enabled:
            return False
        if self._connected:
            return True
        if time.monotonic() < self._retry_after:
            return False
        try:
            await self.connect()
        except Exception:
            return False
        return True

    def _classify_error(self, error: Exception) -> str:
        if isinstance(error, (RedisConnectionError, ConnectionError)):
            return 'connection'
        elif isinstance(error, (RedisTimeoutError, TimeoutError, asyncio.TimeoutError)):
            return 'timeout'
        return 'other'

    def _handle_cache_error(self, operation: str, error: Exception, key: str | None = None) -> None:
        error_type = self._classify_error(error)
        cache_errors_total.labels(operation=operation, error_type=error_type).inc()

        if error_type == 'connection':
            self._connected = False
            self._retry_after = time.monotonic() + self.RECONNECT_BACKOFF_SECONDS
            cache_connection_status.set(0)

        logger.warning(
            f"Cache {operation} error",
            extra={'error': str(error), 'error_type': error_type, 'key': key}
        )

    async def get(self, key: str, key_type: str = "generic") -> Any | None:
        """Get value from cache. Returns None if not found or on error."""
        if not await self._ensure_connected():
            return None

        try:
            value = await self.redis.get(key)
        except Exception as e:
            self._handle_cache_error('get', e, key=key)
            return None

        if value is None:
            cache_misses_total.labels(cache_key_type=key_type).inc()
            return None

        cache_hits_total.labels(cache_key_type=key_type).inc()
        return safe_json_loads(value)

    async def set(self, key: str, value: Any, ttl: int | None = None):
        """Set value in cache (JSON serialized)."""
        if not await self._ensure_connected():
            return

        try:
            await self.redis.setex(key, ttl or Cache.DEFAULT_TTL_SECONDS, safe_json_dumps(value))
        except Exception as e:
            self._handle_cache_error('set', e, key=key)

    async def delete(self, *keys: str):
        """Delete values from cache."""
        if not keys or not await self._ensure_connected():
            return

        try:
            await self.redis.delete(*keys)
        except Exception as e:
            self._handle_cache_error('delete', e, key=",".join(keys))

    async def get_or_set(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
        key_type: str = "generic"
    ) -> Any:
        """Return the cached value, or compute it with ``fetch_fn`` and cache it.

        ``None`` results are not cached.
        """
        cached = await self.get(key, key_type=key_type)
        if cached is not None:
            return cached

        value = await fetch_fn()
        if value is not None:
            await self.set(key, value, ttl=ttl)
        return value

    async def invalidate_stall(self, stall_id: int):
        """Drop a stall's cached detail and the category list."""
        await self.delete(stall_key(stall_id), categories_key())
        logger.debug("Stall cache invalidated", extra={'stall_id': stall_id})


cache = CacheService()


def stall_key(stall_id: int) -> str:
    """Generate cache key for a stall detail payload."""
    return Cache.STALL_KEY.format(stall_id=stall_id)


def categories_key() -> str:
    """Generate cache key for the category list."""
    return generate_cache_key(Cache.CATEGORIES_KEY)
