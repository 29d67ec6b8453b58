"""Dependency injection utilities for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request

from linkhop.services.click_dispatcher import ClickDispatcher
from linkhop.services.link import LinkService


def get_link_service(request: Request) -> LinkService:
    """Get the link service built during application startup."""
    return request.app.state.link_service


def get_click_dispatcher(request: Request) -> ClickDispatcher:
    """Get the dispatcher that runs click recording off the request path."""
    return request.app.state.click_dispatcher


# Type aliases for dependency injection
LinkServiceDep = Annotated[LinkService, Depends(get_link_service)]
ClickDispatcherDep = Annotated[ClickDispatcher, Depends(get_click_dispatcher)]
