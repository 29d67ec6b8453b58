"""Cache-aside access to short links.

Reads go to the cache first and fall back to the durable store on a miss,
repopulating the cache. Writes go to the durable store synchronously and to
the cache best-effort. The cache may be absent, empty, stale within its TTL,
or down; none of that changes the answer, only the latency.
"""

from uuid import UUID

import structlog
from pydantic import ValidationError

from linkhop.core.errors import BackendError, CacheError
from linkhop.core.metrics import record_cache_result
from linkhop.repositories.base import Cache, LinkRepository
from linkhop.schemas.link import ShortLink
from linkhop.services.timeouts import bounded

logger = structlog.get_logger()

# Cache key prefixes
LINK_CACHE_PREFIX = "link:"
LINK_CACHE_TTL = 3600  # 1 hour


def link_cache_key(code: str) -> str:
    """Generate cache key for a link."""
    return f"{LINK_CACHE_PREFIX}{code}"


class CacheAsideStore:
    """Single read/write surface over a look-aside cache and a link repository."""

    def __init__(
        self,
        links: LinkRepository,
        cache: Cache | None = None,
        ttl: int = LINK_CACHE_TTL,
        timeout: float | None = None,
    ):
        """Initialize the store.

        Args:
            links: Durable link repository, the source of truth.
            cache: Optional cache. ``None`` means every lookup hits the store.
            ttl: Cache entry time-to-live in seconds.
            timeout: Deadline in seconds for each cache or store call.
        """
        self._links = links
        self._cache = cache
        self._ttl = ttl
        self._timeout = timeout
        self._hits = 0
        self._misses = 0
        self._errors = 0

    async def lookup(self, code: str) -> ShortLink | None:
        """Get a link by code, cache first.

        Store failures propagate as ``BackendError``; cache failures are
        logged and treated as a miss.
        """
        cached = await self._cache_get(code)
        if cached is not None:
            self._hits += 1
            record_cache_result("hit")
            logger.debug("Cache hit", short_code=code)
            return cached

        self._misses += 1
        record_cache_result("miss")
        logger.debug("Cache miss", short_code=code)

        link = await bounded(self._links.get_by_code(code), self._timeout, "link lookup")
        if link is not None:
            await self._cache_set(code, link)
        return link

    async def store(self, code: str, link: ShortLink) -> ShortLink:
        """Persist a new link, then cache it.

        Returns the record with its store-assigned id. Persistence errors
        (including ``DuplicateCodeError``) propagate; caching never fails.
        """
        link_id: UUID = await bounded(self._links.create(link), self._timeout, "link create")
        created = link.model_copy(update={"id": link_id})
        await self._cache_set(code, created)
        return created

    async def invalidate(self, code: str) -> None:
        """Remove the cache entry for ``code``. The durable store is untouched."""
        if self._cache is None:
            return
        try:
            await bounded(self._cache.delete(link_cache_key(code)), self._timeout, "cache delete")
            logger.debug("Cache invalidated", short_code=code)
        except (CacheError, BackendError) as e:
            self._record_error("delete", code, e)

    async def _cache_get(self, code: str) -> ShortLink | None:
        if self._cache is None:
            return None
        try:
            data = await bounded(self._cache.get(link_cache_key(code)), self._timeout, "cache get")
        except (CacheError, BackendError) as e:
            self._record_error("get", code, e)
            return None
        if data is None:
            return None
        try:
            return ShortLink.model_validate_json(data)
        except ValidationError as e:
            # Unreadable entries are dropped and refilled from the store
            self._record_error("decode", code, e)
            return None

    async def _cache_set(self, code: str, link: ShortLink) -> None:
        if self._cache is None:
            return
        try:
            await bounded(
                self._cache.set(link_cache_key(code), link.model_dump_json(), self._ttl),
                self._timeout,
                "cache set",
            )
            logger.debug("Link cached", short_code=code, ttl=self._ttl)
        except (CacheError, BackendError) as e:
            self._record_error("set", code, e)

    def _record_error(self, operation: str, code: str, error: Exception) -> None:
        self._errors += 1
        record_cache_result("error")
        logger.warning(
            f"Cache {operation} failed",
            short_code=code,
            error=str(error),
        )

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
        }
