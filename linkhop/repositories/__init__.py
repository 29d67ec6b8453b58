"""Storage backends for links, click events, and the look-aside cache."""

from linkhop.repositories.base import Cache, ClickRepository, LinkRepository
from linkhop.repositories.memory import (
    MemoryCache,
    MemoryClickRepository,
    MemoryLinkRepository,
)

__all__ = [
    "Cache",
    "ClickRepository",
    "LinkRepository",
    "MemoryCache",
    "MemoryClickRepository",
    "MemoryLinkRepository",
]
