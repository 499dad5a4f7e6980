import logging
from typing import Annotated

from fastapi import APIRouter, Header

from meetgrid import db
from meetgrid.core.slots import SlotLattice, build_lattice, format_time
from meetgrid.errors import DatabaseError, NotFoundError
from meetgrid.models.events import CreateEventRequest, Event, EventResponse

logger = logging.getLogger("meetgrid.events")
router = APIRouter()


def event_lattice(event: Event) -> SlotLattice:
    return build_lattice(event.date_range_start, event.date_range_end, event.time_slot_duration)


async def load_event(event_id: str) -> Event:
    """Fetch an event or raise a 404."""
    row = await db.get_event(event_id)
    if not row:
        logger.warning("Event not found: %s", event_id)
        raise NotFoundError(detail="Event not found", resource_type="event", resource_id=event_id)
    return Event.model_validate(row)


def _event_response(event: Event) -> EventResponse:
    lattice = event_lattice(event)
    return EventResponse(
        event=event,
        dates=[d.isoformat() for d in lattice.dates],
        times=[format_time(t) for t in lattice.times],
        slot_count=len(lattice),
    )


@router.post("/events", status_code=201)
async def create_event(
    req: CreateEventRequest,
    x_user_id: Annotated[str | None, Header()] = None,
) -> EventResponse:
    logger.info(
        "POST /events name=%s range=%s..%s duration=%d",
        req.name,
        req.date_range_start,
        req.date_range_end,
        req.time_slot_duration,
    )
    try:
        row = await db.create_event(
            name=req.name,
            date_range_start=req.date_range_start,
            date_range_end=req.date_range_end,
            time_slot_duration=req.time_slot_duration,
            description=req.description,
            creator_id=x_user_id,
            creator_can_see_emails=req.creator_can_see_emails,
        )
    except Exception as e:
        logger.exception("Failed to create event")
        raise DatabaseError(detail=f"Failed to create event: {e}") from e
    event = Event.model_validate(row)
    logger.info("Created event id=%s", event.id)
    return _event_response(event)


@router.get("/events/{event_id}")
async def get_event(event_id: str) -> EventResponse:
    logger.info("GET /events/%s", event_id)
    return _event_response(await load_event(event_id))
