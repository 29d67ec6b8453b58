"""Click SQLAlchemy model for storing raw click events."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from linkhop.core.database import Base

if TYPE_CHECKING:
    from linkhop.models.link import Link


class Click(Base):
    """Click model for storing raw click/redirect events.

    Each row represents a single click on a shortened URL. Rows are never
    updated; they disappear only when the parent link is hard-deleted.
    """

    __tablename__ = "clicks"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    link_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clicked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Timestamp when the click occurred",
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(45),
        nullable=True,
        comment="Client IP address",
    )
    user_agent: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP User-Agent header",
    )
    referer: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="HTTP Referer header",
    )
    country_code: Mapped[str | None] = mapped_column(
        String(2),
        nullable=True,
        comment="ISO 3166-1 alpha-2 country code",
    )
    city: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    link: Mapped["Link"] = relationship(back_populates="clicks")

    # Composite index for the most-recent-first stats query
    __table_args__ = (
        Index("ix_clicks_link_id_clicked_at", "link_id", "clicked_at"),
    )

    def __repr__(self) -> str:
        return f"<Click {self.id} link={self.link_id} at={self.clicked_at}>"
