"""Logging, tracing and error tracking setup, plus the request context middleware."""

import logging
import time
import uuid
from contextvars import ContextVar

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from linkhop.core.config import Settings
from linkhop.core.metrics import observe_request, render_metrics

REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, log its outcome and time it.

    The id is taken from the incoming ``X-Request-ID`` header when present,
    bound into the structlog context for every log line emitted while the
    request runs, and echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        logger = structlog.get_logger()
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request crashed")
            raise
        finally:
            request_id_ctx.reset(token)

        duration = time.perf_counter() - start
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        observe_request(request.method, request.url.path, response.status_code, duration)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging.

    JSON lines in deployed environments; a readable console renderer when
    ``log_json`` is off.
    """
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper())
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=level)


def setup_tracing(app: FastAPI, settings: Settings) -> None:
    """Export spans over OTLP when an endpoint is configured."""
    logger = structlog.get_logger()
    if not settings.otlp_endpoint:
        logger.info("Tracing disabled, no OTLP endpoint configured")
        return

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: "linkhop"}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)

    logger.info("Tracing configured", otlp_endpoint=settings.otlp_endpoint)


def setup_error_tracking(settings: Settings) -> None:
    logger = structlog.get_logger()
    if not settings.sentry_dsn:
        logger.info("Sentry disabled, no DSN configured")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment="development" if settings.debug else "production",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )
    logger.info("Sentry configured")


def setup_observability(app: FastAPI, settings: Settings) -> None:
    """Configure logging, tracing and Sentry, and mount ``/metrics``."""
    configure_logging(settings)
    setup_error_tracking(settings)
    setup_tracing(app, settings)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        payload, content_type = render_metrics()
        return Response(content=payload, media_type=content_type)
