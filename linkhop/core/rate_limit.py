"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from starlette.requests import Request

from linkhop.core.config import get_settings
from linkhop.core.middleware import get_client_ip

settings = get_settings()


def get_rate_limit_key(request: Request) -> str:
    """Key requests by the real client IP, handling proxies."""
    return get_client_ip(request) or "unknown"


# Per-process counters unless rate_limit_storage_uri points at shared storage
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# High limit for the redirect endpoint - this is the hot path
RATE_LIMIT_REDIRECT = "1000/minute"

# Lower limit for link creation - prevent spam/abuse
RATE_LIMIT_CREATE_LINK = "60/hour"

# General API endpoints - moderate limit
RATE_LIMIT_API = "100/minute"
