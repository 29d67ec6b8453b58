"""Pydantic schemas."""

from linkhop.schemas.click import ClickEvent, ClickInfo, LinkStatsResponse
from linkhop.schemas.link import (
    LinkCreate,
    LinkResponse,
    LinkUpdate,
    ShortLink,
)

__all__ = [
    "ClickEvent",
    "ClickInfo",
    "LinkStatsResponse",
    "LinkCreate",
    "LinkResponse",
    "LinkUpdate",
    "ShortLink",
]
