"""Service layer: validation, code generation, caching, and link operations."""

from linkhop.services.cache_aside import CacheAsideStore
from linkhop.services.click_dispatcher import ClickDispatcher
from linkhop.services.link import LinkService

__all__ = ["CacheAsideStore", "ClickDispatcher", "LinkService"]
