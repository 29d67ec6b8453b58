"""Link Pydantic schemas."""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from linkhop.core.errors import LinkExpiredError, LinkInactiveError

# Ten years
MAX_EXPIRES_IN_HOURS = 24 * 365 * 10


def utc_now() -> datetime:
    """Return timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def normalize_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime to timezone-aware UTC (assume naive is UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ShortLink(BaseModel):
    """A shortened link record as held by the durable store and the cache.

    Only the raw record is ever cached. Accessibility is derived from
    ``active`` and ``expires_at`` against the clock on every read.
    """

    id: UUID | None = None
    code: str = Field(min_length=1, max_length=20)
    target: str
    custom_alias: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime | None = None
    click_count: int = 0
    created_by: str = "anonymous"
    active: bool = True

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the link has expired."""
        expires_at = normalize_utc(self.expires_at)
        if expires_at is None:
            return False
        return (now or utc_now()) >= expires_at

    def is_accessible(self, now: datetime | None = None) -> bool:
        return self.active and not self.is_expired(now)

    def check_access(self, now: datetime | None = None) -> None:
        """Raise if the link may not be followed right now."""
        if not self.active:
            raise LinkInactiveError(self.code)
        if self.is_expired(now):
            raise LinkExpiredError(self.code)


class LinkCreate(BaseModel):
    """Schema for creating a new link.

    The URL and alias are validated by the service, not here, so that the
    error kinds stay the same for every caller.
    """

    url: str = Field(description="The URL to shorten")
    custom_alias: str | None = Field(default=None, description="Optional custom short code")
    expires_in_hours: int | None = Field(
        default=None,
        ge=1,
        le=MAX_EXPIRES_IN_HOURS,
        description="Optional lifetime in hours",
    )
    created_by: str = Field(default="anonymous", max_length=255)


class LinkUpdate(BaseModel):
    """Schema for updating a link."""

    url: str | None = None
    expires_at: datetime | None = None


class LinkResponse(BaseModel):
    """Schema for link response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    short_url: str
    target: str
    custom_alias: str | None
    active: bool
    click_count: int
    created_by: str
    created_at: datetime
    expires_at: datetime | None

    @classmethod
    def from_link(cls, link: ShortLink, base_url: str) -> "LinkResponse":
        return cls(
            **link.model_dump(),
            short_url=f"{base_url.rstrip('/')}/{link.code}",
        )
