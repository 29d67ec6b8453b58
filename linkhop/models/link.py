"""Link SQLAlchemy model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkhop.core.database import Base


class Link(Base):
    """Link model for shortened URLs."""

    __tablename__ = "links"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    short_code: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Short code for the URL (e.g., 'abc123' or 'my-custom-slug')",
    )
    original_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="The original URL to redirect to",
    )
    custom_alias: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
        comment="Caller-chosen alias, when the short code was not generated",
    )
    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Opaque attribution string",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the link is active (soft delete)",
    )
    click_count: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
        comment="Total click count, only changed by atomic increment",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Optional expiration timestamp",
    )

    clicks: Mapped[list["Click"]] = relationship(
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Link {self.short_code} -> {self.original_url[:50]}>"


from linkhop.models.click import Click  # noqa: E402
