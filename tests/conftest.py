"""Shared pytest fixtures for service and API tests.

Everything runs against the in-process repositories so the suite needs
neither PostgreSQL nor Redis.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from linkhop.api.deps import get_click_dispatcher, get_link_service
from linkhop.core.errors import BackendError, CacheError
from linkhop.core.rate_limit import limiter
from linkhop.main import app
from linkhop.repositories.memory import MemoryCache, MemoryClickRepository, MemoryLinkRepository
from linkhop.schemas.click import ClickEvent
from linkhop.services.cache_aside import CacheAsideStore
from linkhop.services.click_dispatcher import ClickDispatcher
from linkhop.services.link import LinkService


class FailingCache:
    """Cache whose every call fails, as if Redis were unreachable."""

    def __init__(self) -> None:
        self.calls = 0

    async def get(self, key: str) -> str | None:
        self.calls += 1
        raise CacheError("connection refused")

    async def set(self, key: str, value: str, ttl: int) -> None:
        self.calls += 1
        raise CacheError("connection refused")

    async def delete(self, key: str) -> None:
        self.calls += 1
        raise CacheError("connection refused")


class FailingClickRepository(MemoryClickRepository):
    """Click store that rejects every append."""

    async def append(self, event: ClickEvent) -> None:
        raise BackendError("click store unavailable")


@pytest.fixture
def links() -> MemoryLinkRepository:
    return MemoryLinkRepository()


@pytest.fixture
def clicks() -> MemoryClickRepository:
    return MemoryClickRepository()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def store(links: MemoryLinkRepository, cache: MemoryCache) -> CacheAsideStore:
    return CacheAsideStore(links, cache, ttl=60, timeout=1.0)


@pytest.fixture
def service(
    links: MemoryLinkRepository,
    clicks: MemoryClickRepository,
    store: CacheAsideStore,
) -> LinkService:
    return LinkService(links, clicks, store, timeout=1.0)


@pytest_asyncio.fixture(scope="function")
async def dispatcher() -> AsyncGenerator[ClickDispatcher, None]:
    dispatcher = ClickDispatcher()
    yield dispatcher
    await dispatcher.drain(timeout=1.0)


@pytest_asyncio.fixture(scope="function")
async def client(
    service: LinkService,
    dispatcher: ClickDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    limiter.reset()
    app.dependency_overrides[get_link_service] = lambda: service
    app.dependency_overrides[get_click_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
