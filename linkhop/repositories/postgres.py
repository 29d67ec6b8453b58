"""SQLAlchemy implementations of the link and click repositories."""

from uuid import UUID

import structlog
from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linkhop.core.errors import BackendError, DuplicateCodeError
from linkhop.models.click import Click
from linkhop.models.link import Link
from linkhop.schemas.click import ClickEvent
from linkhop.schemas.link import ShortLink, normalize_utc

logger = structlog.get_logger()


def link_to_schema(row: Link) -> ShortLink:
    """Convert an ORM row into the record shared with the cache."""
    return ShortLink(
        id=row.id,
        code=row.short_code,
        target=row.original_url,
        custom_alias=row.custom_alias,
        created_at=normalize_utc(row.created_at),
        expires_at=normalize_utc(row.expires_at),
        click_count=row.click_count,
        created_by=row.created_by,
        active=row.is_active,
    )


def click_to_schema(row: Click) -> ClickEvent:
    return ClickEvent(
        id=row.id,
        link_id=row.link_id,
        occurred_at=normalize_utc(row.clicked_at),
        client_ip=row.ip_address,
        user_agent=row.user_agent,
        referer=row.referer,
        country_code=row.country_code,
        city=row.city,
    )


class SQLLinkRepository:
    """Link repository backed by SQLAlchemy.

    Each call runs in its own session and commits before returning, so a
    created link is visible to readers only once fully committed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, link: ShortLink) -> UUID:
        async with self._session_factory() as session:
            row = Link(
                short_code=link.code,
                original_url=link.target,
                custom_alias=link.custom_alias,
                created_by=link.created_by,
                is_active=link.active,
                click_count=0,
                created_at=link.created_at,
                expires_at=link.expires_at,
            )
            try:
                session.add(row)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning("Short code insert conflict", short_code=link.code)
                raise DuplicateCodeError(link.code) from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Failed to create link", short_code=link.code, error=str(e))
                raise BackendError("Failed to create link") from e
            return row.id

    async def _get_one(self, *criteria) -> ShortLink | None:
        async with self._session_factory() as session:
            try:
                result = await session.execute(select(Link).where(*criteria))
            except SQLAlchemyError as e:
                logger.error("Failed to query link", error=str(e))
                raise BackendError("Failed to query link") from e
            row = result.scalar_one_or_none()
            return link_to_schema(row) if row else None

    async def get_by_code(self, code: str) -> ShortLink | None:
        return await self._get_one(Link.short_code == code)

    async def get_by_alias(self, alias: str) -> ShortLink | None:
        return await self._get_one(Link.custom_alias == alias)

    async def get_by_id(self, link_id: UUID) -> ShortLink | None:
        return await self._get_one(Link.id == link_id)

    async def _execute_update(self, statement, description: str) -> bool:
        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to {description}", error=str(e))
                raise BackendError(f"Failed to {description}") from e
            return result.rowcount > 0

    async def update(self, link: ShortLink) -> None:
        await self._execute_update(
            update(Link)
            .where(Link.id == link.id)
            .values(original_url=link.target, expires_at=link.expires_at),
            "update link",
        )

    async def soft_delete(self, link_id: UUID) -> bool:
        return await self._execute_update(
            update(Link).where(Link.id == link_id).values(is_active=False),
            "delete link",
        )

    async def increment_clicks(self, code: str) -> bool:
        # Single UPDATE so concurrent redirects never lose an increment
        return await self._execute_update(
            update(Link)
            .where(Link.short_code == code)
            .values(click_count=Link.click_count + 1),
            "increment clicks",
        )

    async def _exists(self, *criteria) -> bool:
        async with self._session_factory() as session:
            try:
                result = await session.execute(select(exists().where(*criteria)))
            except SQLAlchemyError as e:
                logger.error("Failed to check link existence", error=str(e))
                raise BackendError("Failed to check link existence") from e
            return bool(result.scalar())

    async def exists_code(self, code: str) -> bool:
        return await self._exists(Link.short_code == code)

    async def exists_alias(self, alias: str) -> bool:
        return await self._exists(Link.custom_alias == alias)


class SQLClickRepository:
    """Click event repository backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, event: ClickEvent) -> None:
        async with self._session_factory() as session:
            try:
                session.add(
                    Click(
                        link_id=event.link_id,
                        clicked_at=event.occurred_at,
                        ip_address=event.client_ip,
                        user_agent=event.user_agent,
                        referer=event.referer,
                        country_code=event.country_code,
                        city=event.city,
                    )
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise BackendError("Failed to store click") from e

    async def list_recent(self, link_id: UUID, limit: int) -> list[ClickEvent]:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(Click)
                    .where(Click.link_id == link_id)
                    .order_by(Click.clicked_at.desc(), Click.id.desc())
                    .limit(limit)
                )
            except SQLAlchemyError as e:
                logger.error("Failed to list clicks", link_id=str(link_id), error=str(e))
                raise BackendError("Failed to list clicks") from e
            return [click_to_schema(row) for row in result.scalars().all()]
