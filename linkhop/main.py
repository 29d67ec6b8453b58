"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from linkhop.api.redirect import router as redirect_router
from linkhop.api.v1.router import router as v1_router
from linkhop.core.config import Settings, get_settings
from linkhop.core.database import close_db, get_session_factory, init_db
from linkhop.core.errors import LinkhopError
from linkhop.core.middleware import SecurityHeadersMiddleware
from linkhop.core.observability import RequestContextMiddleware, setup_observability
from linkhop.core.rate_limit import limiter
from linkhop.core.redis import RedisCache, close_redis, get_redis
from linkhop.repositories.base import Cache, ClickRepository, LinkRepository
from linkhop.repositories.memory import (
    MemoryCache,
    MemoryClickRepository,
    MemoryLinkRepository,
)
from linkhop.repositories.postgres import SQLClickRepository, SQLLinkRepository
from linkhop.services.cache_aside import CacheAsideStore
from linkhop.services.click_dispatcher import ClickDispatcher
from linkhop.services.link import LinkService

logger = structlog.get_logger()


async def build_link_service(settings: Settings) -> LinkService:
    """Wire repositories, cache and service for the configured backend."""
    links: LinkRepository
    clicks: ClickRepository
    cache: Cache | None = None

    if settings.storage_backend == "memory":
        links, clicks = MemoryLinkRepository(), MemoryClickRepository()
        if settings.cache_enabled:
            cache = MemoryCache()
    else:
        await init_db()
        session_factory = get_session_factory()
        links, clicks = SQLLinkRepository(session_factory), SQLClickRepository(session_factory)
        if settings.cache_enabled:
            cache = RedisCache(await get_redis())

    store = CacheAsideStore(
        links,
        cache,
        ttl=settings.cache_ttl_seconds,
        timeout=settings.backend_timeout_seconds,
    )
    return LinkService(
        links,
        clicks,
        store,
        code_length=settings.short_code_length,
        max_generation_attempts=settings.max_generation_attempts,
        stats_click_limit=settings.stats_click_limit,
        timeout=settings.backend_timeout_seconds,
    )


async def linkhop_error_handler(request: Request, exc: LinkhopError) -> JSONResponse:
    """Render service errors with their stable kind."""
    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.kind.value, detail=exc.message)
    else:
        logger.info("Request rejected", error=exc.kind.value, detail=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind.value},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "Starting Linkhop",
            version=settings.app_version,
            storage_backend=settings.storage_backend,
            cache_enabled=settings.cache_enabled,
        )
        app.state.link_service = await build_link_service(settings)
        app.state.click_dispatcher = ClickDispatcher()

        yield

        logger.info("Shutting down Linkhop")
        # Pending clicks still need the database, so drain before closing it
        await app.state.click_dispatcher.drain(timeout=settings.click_drain_timeout_seconds)
        await close_redis()
        await close_db()
        logger.info("Connections closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="URL shortener with click analytics",
        lifespan=lifespan,
    )

    setup_observability(app, settings)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(LinkhopError, linkhop_error_handler)

    # Last added runs outermost
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.debug)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(v1_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"service": settings.app_name, "version": settings.app_version}

    # Catch-all short code route goes last so it never shadows the routes above
    app.include_router(redirect_router)

    return app


app = create_app()
