"""Link CRUD and stats endpoints."""

from datetime import timedelta
from uuid import UUID

import structlog
from fastapi import APIRouter, Request, status

from linkhop.api.deps import LinkServiceDep
from linkhop.core.config import get_settings
from linkhop.core.metrics import record_link_operation
from linkhop.core.rate_limit import RATE_LIMIT_API, RATE_LIMIT_CREATE_LINK, limiter
from linkhop.schemas.click import ClickInfo, LinkStatsResponse
from linkhop.schemas.link import LinkCreate, LinkResponse, LinkUpdate
from linkhop.services.link import UNSET

settings = get_settings()
logger = structlog.get_logger()

router = APIRouter(prefix="/links", tags=["links"])


@router.post("", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_CREATE_LINK)
async def create_link(
    request: Request,
    link_data: LinkCreate,
    service: LinkServiceDep,
) -> LinkResponse:
    """Create a new shortened link.

    If `custom_alias` is provided, it will be used as the short code.
    Otherwise, a random short code will be generated.
    """
    ttl = timedelta(hours=link_data.expires_in_hours) if link_data.expires_in_hours else None
    link = await service.create_short_link(
        target=link_data.url,
        alias=link_data.custom_alias,
        created_by=link_data.created_by,
        ttl=ttl,
    )
    record_link_operation("create")
    return LinkResponse.from_link(link, settings.base_url)


@router.get("/{code}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link(
    request: Request,
    code: str,
    service: LinkServiceDep,
) -> LinkResponse:
    """Get an accessible link by short code or alias."""
    link = await service.get_short_link(code)
    return LinkResponse.from_link(link, settings.base_url)


@router.get("/{code}/stats", response_model=LinkStatsResponse)
@limiter.limit(RATE_LIMIT_API)
async def get_link_stats(
    request: Request,
    code: str,
    service: LinkServiceDep,
) -> LinkStatsResponse:
    """Get click statistics for a link, including its most recent clicks."""
    link, clicks = await service.get_stats(code)
    return LinkStatsResponse(
        link=LinkResponse.from_link(link, settings.base_url),
        total_clicks=link.click_count,
        recent_clicks=[
            ClickInfo(
                occurred_at=click.occurred_at,
                referer=click.referer,
                country_code=click.country_code,
                city=click.city,
            )
            for click in clicks
        ],
    )


@router.patch("/{link_id}", response_model=LinkResponse)
@limiter.limit(RATE_LIMIT_API)
async def update_link(
    request: Request,
    link_id: UUID,
    link_data: LinkUpdate,
    service: LinkServiceDep,
) -> LinkResponse:
    """Update a link's target and/or expiry."""
    expires_at = link_data.expires_at if "expires_at" in link_data.model_fields_set else UNSET
    link = await service.update_short_link(
        link_id,
        target=link_data.url,
        expires_at=expires_at,
    )
    record_link_operation("update")
    return LinkResponse.from_link(link, settings.base_url)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_API)
async def delete_link(
    request: Request,
    link_id: UUID,
    service: LinkServiceDep,
) -> None:
    """Soft-delete a link. Its click history is kept."""
    await service.delete_short_link(link_id)
    record_link_operation("delete")
