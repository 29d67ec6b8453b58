"""Link service: short code allocation, access checks, and click accounting.

The service keeps no mutable state of its own. Records and counters live in
the durable store, which is the sole arbiter of consistency; the cache is
reached only through the cache-aside store.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog

from linkhop.core.errors import (
    AliasTakenError,
    BackendError,
    CodeSpaceExhaustedError,
    DuplicateCodeError,
    InvalidExpiryError,
    LinkNotFoundError,
)
from linkhop.core.metrics import record_click_result
from linkhop.repositories.base import ClickRepository, LinkRepository
from linkhop.schemas.click import ClickEvent
from linkhop.schemas.link import ShortLink, utc_now
from linkhop.services.cache_aside import CacheAsideStore
from linkhop.services.codegen import SHORT_CODE_LENGTH, generate_code
from linkhop.services.timeouts import bounded
from linkhop.services.validator import validate_alias, validate_target

logger = structlog.get_logger()

MAX_GENERATION_ATTEMPTS = 10
STATS_CLICK_LIMIT = 100

# Distinguishes "leave expiry alone" from "clear expiry" in updates
UNSET: Any = object()


class LinkService:
    """Create, resolve, update and delete short links and record clicks."""

    def __init__(
        self,
        links: LinkRepository,
        clicks: ClickRepository,
        store: CacheAsideStore,
        *,
        code_length: int = SHORT_CODE_LENGTH,
        max_generation_attempts: int = MAX_GENERATION_ATTEMPTS,
        stats_click_limit: int = STATS_CLICK_LIMIT,
        timeout: float | None = None,
        code_generator: Callable[[int], str] = generate_code,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._links = links
        self._clicks = clicks
        self._store = store
        self._code_length = code_length
        self._max_attempts = max_generation_attempts
        self._stats_limit = stats_click_limit
        self._timeout = timeout
        self._generate = code_generator
        self._clock = clock

    @property
    def store(self) -> CacheAsideStore:
        return self._store

    async def create_short_link(
        self,
        target: str,
        alias: str | None = None,
        created_by: str = "anonymous",
        ttl: timedelta | None = None,
    ) -> ShortLink:
        """Create a new shortened link.

        The short code is resolved before the target is validated, so a
        taken alias is reported even when the target is also invalid.
        A zero or missing ``ttl`` means the link never expires; a negative
        one creates a link that is already expired.
        """
        attempts = 0
        if alias:
            validate_alias(alias)
            if await self._is_taken(alias):
                logger.info("Alias already taken", alias=alias)
                raise AliasTakenError(alias)
            code = alias
        else:
            code, attempts = await self._generate_unique_code(attempts)

        validate_target(target)

        now = self._clock()
        try:
            expires_at = now + ttl if ttl else None
        except OverflowError:
            raise InvalidExpiryError("expiry is out of range") from None

        while True:
            link = ShortLink(
                code=code,
                target=target.strip(),
                custom_alias=alias or None,
                created_at=now,
                expires_at=expires_at,
                click_count=0,
                created_by=created_by,
                active=True,
            )
            try:
                created = await self._store.store(code, link)
            except DuplicateCodeError:
                # Another writer committed the same code after our existence check
                if alias:
                    raise AliasTakenError(alias) from None
                logger.warning("Generated code taken at insert, regenerating", short_code=code)
                code, attempts = await self._generate_unique_code(attempts)
                continue

            logger.info(
                "Link created",
                link_id=str(created.id),
                short_code=code,
                custom=bool(alias),
                attempts=attempts,
            )
            return created

    async def get_short_link(self, code_or_alias: str) -> ShortLink:
        """Resolve a code or alias to an accessible link.

        Raises LinkNotFoundError, LinkInactiveError or LinkExpiredError.
        Access is re-checked against the clock even on a cache hit.
        """
        link = await self._store.lookup(code_or_alias)
        if link is None:
            link = await bounded(
                self._links.get_by_alias(code_or_alias), self._timeout, "alias lookup"
            )
        if link is None:
            raise LinkNotFoundError(code_or_alias)

        link.check_access(self._clock())
        return link

    async def record_click(
        self,
        code: str,
        client_ip: str | None = None,
        user_agent: str | None = None,
        referer: str | None = None,
        country_code: str | None = None,
        city: str | None = None,
    ) -> None:
        """Count a click and append its analytics event.

        The link is read from the durable store, never the cache, so the
        event is attached to the authoritative id. The counter increment is
        required; the event append is best-effort.
        """
        link = await bounded(self._links.get_by_code(code), self._timeout, "link lookup")
        if link is None:
            record_click_result("failed")
            raise LinkNotFoundError(code)

        incremented = await bounded(
            self._links.increment_clicks(code), self._timeout, "click increment"
        )
        if not incremented:
            record_click_result("failed")
            raise LinkNotFoundError(code)

        event = ClickEvent(
            link_id=link.id,
            occurred_at=self._clock(),
            client_ip=client_ip,
            user_agent=user_agent,
            referer=referer,
            country_code=country_code,
            city=city,
        )
        try:
            await bounded(self._clicks.append(event), self._timeout, "click append")
        except BackendError as e:
            logger.warning(
                "Failed to store click event",
                link_id=str(link.id),
                short_code=code,
                error=str(e),
            )
            record_click_result("event_failed")
            return

        record_click_result("recorded")
        logger.debug("Click recorded", link_id=str(link.id), short_code=code)

    async def get_stats(self, code: str) -> tuple[ShortLink, list[ClickEvent]]:
        """Get a link and its most recent click events, newest first."""
        link = await bounded(self._links.get_by_code(code), self._timeout, "link lookup")
        if link is None:
            raise LinkNotFoundError(code)

        clicks = await bounded(
            self._clicks.list_recent(link.id, self._stats_limit),
            self._timeout,
            "click listing",
        )
        return link, clicks

    async def update_short_link(
        self,
        link_id: UUID,
        target: str | None = None,
        expires_at: datetime | None = UNSET,
    ) -> ShortLink:
        """Change a link's target and/or expiry and drop its cache entry.

        Pass ``expires_at=None`` to remove an expiry; omit it to keep it.
        """
        link = await self._get_by_id(link_id)

        changes: dict[str, Any] = {}
        if target is not None:
            validate_target(target)
            changes["target"] = target.strip()
        if expires_at is not UNSET:
            changes["expires_at"] = expires_at
        if not changes:
            return link

        updated = link.model_copy(update=changes)
        await bounded(self._links.update(updated), self._timeout, "link update")
        await self._store.invalidate(link.code)

        logger.info("Link updated", link_id=str(link_id), fields=sorted(changes))
        return updated

    async def delete_short_link(self, link_id: UUID) -> None:
        """Soft-delete a link by id and drop its cache entry.

        The record is read first so its code is known for invalidation.
        Click history is kept.
        """
        link = await self._get_by_id(link_id)

        deleted = await bounded(self._links.soft_delete(link_id), self._timeout, "link delete")
        if not deleted:
            raise LinkNotFoundError(str(link_id))

        await self._store.invalidate(link.code)
        logger.info("Link deleted", link_id=str(link_id), short_code=link.code)

    async def _get_by_id(self, link_id: UUID) -> ShortLink:
        link = await bounded(self._links.get_by_id(link_id), self._timeout, "link lookup")
        if link is None:
            raise LinkNotFoundError(str(link_id))
        return link

    async def _is_taken(self, alias: str) -> bool:
        """Codes and aliases share one namespace, active or not."""
        if await bounded(self._links.exists_code(alias), self._timeout, "code check"):
            return True
        return await bounded(self._links.exists_alias(alias), self._timeout, "alias check")

    async def _generate_unique_code(self, attempts: int) -> tuple[str, int]:
        """Generate a code not yet in the store.

        ``attempts`` is how much of the retry budget is already spent.
        Returns the code and the updated attempt count.
        """
        while attempts < self._max_attempts:
            attempts += 1
            candidate = self._generate(self._code_length)
            exists = await bounded(
                self._links.exists_code(candidate), self._timeout, "code check"
            )
            if not exists:
                return candidate, attempts
            logger.debug("Short code collision", short_code=candidate, attempt=attempts)

        logger.error("Failed to generate unique code after max attempts", attempts=attempts)
        raise CodeSpaceExhaustedError(self._max_attempts)
