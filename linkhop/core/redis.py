"""Redis client and the look-aside cache built on it."""

import redis.asyncio as redis
import structlog

from linkhop.core.config import get_settings
from linkhop.core.errors import CacheError

settings = get_settings()
logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get the Redis client instance, creating it if necessary."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.backend_timeout_seconds,
            socket_connect_timeout=settings.backend_timeout_seconds,
        )
        logger.info("Redis client initialized", url=settings.redis_url)
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")


class RedisCache:
    """Cache implementation over a Redis client.

    Translates ``redis.RedisError`` into ``CacheError`` so callers deal with
    a single failure type regardless of the cache technology.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except redis.RedisError as e:
            raise CacheError(f"Redis get error: {e}") from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._client.setex(key, ttl, value)
        except redis.RedisError as e:
            raise CacheError(f"Redis set error: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except redis.RedisError as e:
            raise CacheError(f"Redis delete error: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False
