"""Redis-backed cache adapter tests with a mocked client."""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from linkhop.core.errors import CacheError
from linkhop.core.redis import RedisCache


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Mock Redis client."""
    redis_client = AsyncMock(spec=redis.Redis)
    redis_client.get = AsyncMock(return_value=None)
    redis_client.setex = AsyncMock(return_value=True)
    redis_client.delete = AsyncMock(return_value=1)
    redis_client.ping = AsyncMock(return_value=True)
    return redis_client


@pytest.mark.asyncio
async def test_get_passes_through(mock_redis: AsyncMock) -> None:
    mock_redis.get.return_value = '{"code": "abc123"}'
    cache = RedisCache(mock_redis)

    assert await cache.get("link:abc123") == '{"code": "abc123"}'
    mock_redis.get.assert_awaited_once_with("link:abc123")


@pytest.mark.asyncio
async def test_set_uses_ttl(mock_redis: AsyncMock) -> None:
    cache = RedisCache(mock_redis)

    await cache.set("link:abc123", "{}", 3600)

    mock_redis.setex.assert_awaited_once_with("link:abc123", 3600, "{}")


@pytest.mark.asyncio
async def test_delete(mock_redis: AsyncMock) -> None:
    cache = RedisCache(mock_redis)

    await cache.delete("link:abc123")

    mock_redis.delete.assert_awaited_once_with("link:abc123")


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "setex", "delete"])
async def test_redis_errors_become_cache_errors(mock_redis: AsyncMock, method: str) -> None:
    getattr(mock_redis, method).side_effect = redis.ConnectionError("refused")
    cache = RedisCache(mock_redis)

    with pytest.raises(CacheError):
        if method == "get":
            await cache.get("link:abc123")
        elif method == "setex":
            await cache.set("link:abc123", "{}", 60)
        else:
            await cache.delete("link:abc123")


@pytest.mark.asyncio
async def test_ping(mock_redis: AsyncMock) -> None:
    cache = RedisCache(mock_redis)
    assert await cache.ping() is True

    mock_redis.ping.side_effect = redis.ConnectionError("refused")
    assert await cache.ping() is False
