"""Click event Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from linkhop.schemas.link import LinkResponse, utc_now


class ClickEvent(BaseModel):
    """A single click/redirect event recorded against a link.

    Append-only. ``country_code`` and ``city`` are carried when an upstream
    proxy supplies them; this service does not resolve them itself.
    """

    id: int | None = None
    link_id: UUID = Field(description="UUID of the shortened link")
    occurred_at: datetime = Field(
        default_factory=utc_now,
        description="Timestamp when the click occurred",
    )
    client_ip: str | None = Field(default=None, description="Client IP address")
    user_agent: str | None = Field(default=None, description="HTTP User-Agent header")
    referer: str | None = Field(default=None, description="HTTP Referer header")
    country_code: str | None = Field(default=None, max_length=2)
    city: str | None = None

    model_config = {"json_schema_extra": {"example": {
        "link_id": "550e8400-e29b-41d4-a716-446655440000",
        "occurred_at": "2024-01-15T10:30:00Z",
        "client_ip": "192.168.1.1",
        "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        "referer": "https://google.com",
    }}}


class ClickInfo(BaseModel):
    """Click entry as exposed in stats responses."""

    occurred_at: datetime
    referer: str | None = None
    country_code: str | None = None
    city: str | None = None


class LinkStatsResponse(BaseModel):
    """Schema for link statistics."""

    link: LinkResponse
    total_clicks: int
    recent_clicks: list[ClickInfo]
