"""Dependency injection for FastAPI endpoints.

Provides the optional event bus, and the viewer context used
to reconcile "my selection" inside aggregated results.

Usage in controllers:
    from meetgrid.dependencies import OptionalBus, Viewer

    @router.get("/events/{event_id}/results")
    async def results(event_id: str, viewer: Viewer, bus: OptionalBus):
        ...
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from meetgrid import state
from meetgrid.bus import EventBus
from meetgrid.config import get_settings
from meetgrid.core.identity import ViewerContext


def get_optional_event_bus() -> EventBus | None:
    """Get the EventBus if available, or None."""
    return state.event_bus


def get_viewer(
    event_id: str,
    request: Request,
    x_user_id: Annotated[str | None, Header()] = None,
) -> ViewerContext:
    """Build the viewer from the trusted user header, else the remembered schedule cookie."""
    if x_user_id:
        return ViewerContext(user_id=x_user_id)
    remembered = request.cookies.get(get_settings().grid.cookie_name(event_id))
    return ViewerContext(remembered_schedule_id=remembered or None)


OptionalBus = Annotated[EventBus | None, Depends(get_optional_event_bus)]
Viewer = Annotated[ViewerContext, Depends(get_viewer)]
