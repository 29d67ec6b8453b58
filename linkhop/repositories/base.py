"""Storage capability protocols consumed by the service layer.

Implementations raise ``BackendError`` for store failures and
``DuplicateCodeError`` when an insert hits the short code uniqueness
constraint. Cache implementations raise ``CacheError``.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from linkhop.schemas.click import ClickEvent
from linkhop.schemas.link import ShortLink


@runtime_checkable
class LinkRepository(Protocol):
    """Durable store for short links."""

    async def create(self, link: ShortLink) -> UUID:
        """Insert a link and return the store-assigned id."""
        ...

    async def get_by_code(self, code: str) -> ShortLink | None:
        """Get a link by short code, active or not."""
        ...

    async def get_by_alias(self, alias: str) -> ShortLink | None: ...

    async def get_by_id(self, link_id: UUID) -> ShortLink | None: ...

    async def update(self, link: ShortLink) -> None:
        """Persist target and expiry changes. Never touches ``click_count``."""
        ...

    async def soft_delete(self, link_id: UUID) -> bool:
        """Mark a link inactive. Returns False if no such link exists."""
        ...

    async def increment_clicks(self, code: str) -> bool:
        """Atomically add one to the click counter. False if no such link."""
        ...

    async def exists_code(self, code: str) -> bool: ...

    async def exists_alias(self, alias: str) -> bool: ...


@runtime_checkable
class ClickRepository(Protocol):
    """Append-only store for click events."""

    async def append(self, event: ClickEvent) -> None: ...

    async def list_recent(self, link_id: UUID, limit: int) -> list[ClickEvent]:
        """Return up to ``limit`` events for a link, newest first."""
        ...


@runtime_checkable
class Cache(Protocol):
    """Volatile look-aside cache. Expiry is enforced by the cache itself."""

    async def get(self, key: str) -> str | bytes | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...
