"""In-process repositories and cache.

Used by the test suite and by the ``memory`` storage backend for local
development. State lives on the instance, never at module level.
"""

import time
import uuid
from uuid import UUID

from linkhop.core.errors import DuplicateCodeError
from linkhop.schemas.click import ClickEvent
from linkhop.schemas.link import ShortLink


class MemoryLinkRepository:
    """Dict-backed link store with the same contract as the SQL repository.

    No method awaits between reading and writing a record, so every
    mutation is atomic with respect to other tasks on the event loop.
    """

    def __init__(self) -> None:
        self._links: dict[UUID, ShortLink] = {}
        self._by_code: dict[str, UUID] = {}
        self.create_calls = 0

    async def create(self, link: ShortLink) -> UUID:
        self.create_calls += 1
        if link.code in self._by_code:
            raise DuplicateCodeError(link.code)
        link_id = uuid.uuid4()
        self._links[link_id] = link.model_copy(update={"id": link_id, "click_count": 0})
        self._by_code[link.code] = link_id
        return link_id

    async def get_by_code(self, code: str) -> ShortLink | None:
        link_id = self._by_code.get(code)
        return self._links[link_id].model_copy() if link_id else None

    async def get_by_alias(self, alias: str) -> ShortLink | None:
        for link in self._links.values():
            if link.custom_alias == alias:
                return link.model_copy()
        return None

    async def get_by_id(self, link_id: UUID) -> ShortLink | None:
        link = self._links.get(link_id)
        return link.model_copy() if link else None

    async def update(self, link: ShortLink) -> None:
        stored = self._links.get(link.id)
        if stored is not None:
            self._links[link.id] = stored.model_copy(
                update={"target": link.target, "expires_at": link.expires_at}
            )

    async def soft_delete(self, link_id: UUID) -> bool:
        stored = self._links.get(link_id)
        if stored is None:
            return False
        self._links[link_id] = stored.model_copy(update={"active": False})
        return True

    async def increment_clicks(self, code: str) -> bool:
        link_id = self._by_code.get(code)
        if link_id is None:
            return False
        stored = self._links[link_id]
        self._links[link_id] = stored.model_copy(
            update={"click_count": stored.click_count + 1}
        )
        return True

    async def exists_code(self, code: str) -> bool:
        return code in self._by_code

    async def exists_alias(self, alias: str) -> bool:
        return any(link.custom_alias == alias for link in self._links.values())


class MemoryClickRepository:
    """List-backed append-only click store."""

    def __init__(self) -> None:
        self._events: list[ClickEvent] = []
        self._next_id = 1

    async def append(self, event: ClickEvent) -> None:
        self._events.append(event.model_copy(update={"id": self._next_id}))
        self._next_id += 1

    async def list_recent(self, link_id: UUID, limit: int) -> list[ClickEvent]:
        events = [e for e in self._events if e.link_id == link_id]
        events.sort(key=lambda e: (e.occurred_at, e.id), reverse=True)
        return events[:limit]


class MemoryCache:
    """Dict-backed cache honouring per-key TTLs."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if time.monotonic() >= deadline:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        now = time.monotonic()
        self._prune(now)
        self._entries[key] = (value, now + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _prune(self, now: float) -> None:
        """Drop every expired entry so unread keys do not accumulate."""
        expired = [key for key, (_, deadline) in self._entries.items() if now >= deadline]
        for key in expired:
            del self._entries[key]
