"""Redirect endpoint for short links."""

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from linkhop.api.deps import ClickDispatcherDep, LinkServiceDep
from linkhop.core.metrics import record_redirect
from linkhop.core.middleware import get_client_ip
from linkhop.core.rate_limit import RATE_LIMIT_REDIRECT, limiter

logger = structlog.get_logger()

router = APIRouter(tags=["redirect"])


@router.get("/{code}")
@limiter.limit(RATE_LIMIT_REDIRECT)
async def redirect_to_target(
    request: Request,
    code: str,
    service: LinkServiceDep,
    dispatcher: ClickDispatcherDep,
) -> RedirectResponse:
    """Redirect a short code to its original URL.

    Flow:
    1. Resolve the link through the cache-aside store
    2. Reject inactive or expired links
    3. Hand click recording to the dispatcher (not awaited)
    4. Redirect to the target
    """
    link = await service.get_short_link(code)

    # Recorded against the canonical code, even when an alias was requested
    dispatcher.dispatch(
        service.record_click(
            link.code,
            client_ip=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
            referer=request.headers.get("Referer"),
        ),
        name=f"record-click:{link.code}",
    )

    logger.info("Redirect", short_code=link.code, link_id=str(link.id))
    record_redirect(status.HTTP_302_FOUND)

    # 302 rather than 301 because links can expire or change target
    return RedirectResponse(url=link.target, status_code=status.HTTP_302_FOUND)
