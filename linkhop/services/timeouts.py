"""Deadline enforcement for backing store calls."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from linkhop.core.errors import BackendError

T = TypeVar("T")


async def bounded(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    A timeout cancels the underlying call and raises ``BackendError``.
    Cancellation of the calling task propagates unchanged.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as e:
        raise BackendError(f"Timed out during {operation}") from e
