import logging
from datetime import UTC, date, datetime
from functools import partial
from typing import Any, Dict, List, Literal

from fastapi import APIRouter, Response

from meetgrid import db
from meetgrid.bus import EventBus
from meetgrid.config import get_settings
from meetgrid.controllers.events import event_lattice, load_event
from meetgrid.core.aggregation import SlotAggregation, aggregate_schedules
from meetgrid.core.export import grid_csv, grid_json, participants_csv, participants_json
from meetgrid.core.heatmap import AggregateGrid
from meetgrid.core.identity import ViewerContext
from meetgrid.core.participation import validate_submission
from meetgrid.core.results import ResultsView, load_results
from meetgrid.core.slots import SlotLattice, parse_slot_id, parse_time, slot_id
from meetgrid.dependencies import OptionalBus, Viewer
from meetgrid.errors import BadRequestError, ConflictError, DatabaseError, NotFoundError
from meetgrid.events import AvailabilityEvent
from meetgrid.models.events import Event
from meetgrid.models.schedules import (
    BestSlotModel,
    DisclosedParticipant,
    HeatmapCellModel,
    HeatmapRowModel,
    ParticipantModel,
    ResultsResponse,
    Schedule,
    SlotDisclosureResponse,
    SlotParticipant,
    SubmitAvailabilityRequest,
    SubmitAvailabilityResponse,
    TimeSlotAggregationRaw,
)
from meetgrid.presentation import Layout, present_disclosure

logger = logging.getLogger("meetgrid.participation")
router = APIRouter()


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _raw_row(slot: SlotAggregation) -> TimeSlotAggregationRaw:
    return TimeSlotAggregationRaw(
        date=slot.date.isoformat(),
        start_time=slot.start_time,
        end_time=slot.end_time,
        participant_count=slot.participant_count,
        participants=[
            SlotParticipant(
                schedule_id=p.schedule_id,
                display_name=p.display_name,
                user_id=p.user_id,
                email=p.email,
            )
            for p in slot.participants
        ],
    )


async def _aggregated_rows(event_id: str) -> List[TimeSlotAggregationRaw]:
    schedules = [Schedule.model_validate(s) for s in await db.fetch_schedules(event_id)]
    return [_raw_row(s) for s in aggregate_schedules(schedules).slots]


def _shows_emails(event: Event, viewer: ViewerContext) -> bool:
    return event.creator_can_see_emails and viewer.is_authenticated and viewer.user_id == event.creator_id


async def _publish(bus: EventBus | None, event_id: str, event: AvailabilityEvent) -> None:
    if bus is None:
        return
    try:
        await bus.publish(event_id, event)
    except Exception as e:
        logger.warning("Failed to publish %s for event %s: %s", event["type"], event_id, e)


def _resolve_slots(lattice: SlotLattice, req: SubmitAvailabilityRequest) -> List[str]:
    ids = []
    for s in req.slots:
        try:
            sid = lattice.require(slot_id(date.fromisoformat(s.date), parse_time(s.time)))
        except ValueError as e:
            raise BadRequestError(detail=f"Invalid slot: {s.date} {s.time}", error_code="INVALID_SLOT") from e
        ids.append(sid)
    return ids


async def _results(event: Event, viewer: ViewerContext) -> ResultsView:
    return await load_results(
        event_lattice(event),
        partial(_aggregated_rows, event.id),
        viewer,
        best_slots_limit=get_settings().grid.best_slots_limit,
    )


@router.post("/events/{event_id}/availability")
async def submit_availability(
    event_id: str,
    req: SubmitAvailabilityRequest,
    response: Response,
    viewer: Viewer,
    bus: OptionalBus,
) -> SubmitAvailabilityResponse:
    logger.info(
        "POST /events/%s/availability viewer=%s slots=%d",
        event_id,
        "user" if viewer.is_authenticated else "anonymous",
        len(req.slots),
    )
    event = await load_event(event_id)
    lattice = event_lattice(event)
    slot_ids = _resolve_slots(lattice, req)
    validate_submission(frozenset(slot_ids), viewer, req.participant_name or "", req.participant_email or "")

    if viewer.is_authenticated:
        existing = await db.find_schedule(event_id, user_id=viewer.user_id)
    else:
        existing = await db.find_schedule(
            event_id, schedule_id=req.schedule_id or viewer.remembered_schedule_id
        )
        if existing and existing["user_id"] is not None:
            raise ConflictError(detail="Schedule belongs to a signed-in participant", schedule_id=existing["id"])

    display_name = req.participant_name or (existing["display_name"] if existing else "") or viewer.user_id
    availabilities = [
        {"date": day, "start_time": start, "end_time": lattice.end_time(start)}
        for day, start in sorted(parse_slot_id(s) for s in set(slot_ids))
    ]
    try:
        schedule_id = await db.save_schedule(
            event_id,
            display_name,
            availabilities,
            schedule_id=existing["id"] if existing else None,
            user_id=viewer.user_id,
            email=req.participant_email or None,
        )
    except Exception as e:
        logger.exception("Failed to save schedule for event %s", event_id)
        raise DatabaseError(detail=f"Failed to save availability: {e}") from e

    if not viewer.is_authenticated:
        grid = get_settings().grid
        response.set_cookie(
            grid.cookie_name(event_id),
            schedule_id,
            max_age=grid.remember_cookie_max_age,
            httponly=True,
            samesite="lax",
        )

    await _publish(
        bus,
        event_id,
        {
            "type": "availability_updated",
            "event_id": event_id,
            "schedule_id": schedule_id,
            "slot_count": len(availabilities),
            "timestamp": _now(),
        },
    )
    return SubmitAvailabilityResponse(schedule_id=schedule_id, slot_count=len(availabilities))


@router.get("/events/{event_id}/slots")
async def get_aggregated_slots(event_id: str) -> List[TimeSlotAggregationRaw]:
    logger.info("GET /events/%s/slots", event_id)
    await load_event(event_id)
    return await _aggregated_rows(event_id)


@router.get("/events/{event_id}/results")
async def get_results(event_id: str, viewer: Viewer) -> ResultsResponse:
    logger.info("GET /events/%s/results", event_id)
    event = await load_event(event_id)
    view = await _results(event, viewer)
    aggregation = view.aggregation
    return ResultsResponse(
        event_id=event_id,
        total_participants=aggregation.total_participants,
        max_count=view.heatmap.max_count,
        slots=[_raw_row(s) for s in aggregation.slots],
        best_slots=[
            BestSlotModel(
                slot_id=b.slot.slot_id,
                date=b.slot.date.isoformat(),
                start_time=b.slot.start_time,
                end_time=b.slot.end_time,
                participant_count=b.slot.participant_count,
                percentage=round(b.percentage, 1),
            )
            for b in view.best_slots
        ],
        heatmap=[
            HeatmapRowModel(
                time=time,
                cells=[
                    HeatmapCellModel(
                        slot_id=c.slot_id,
                        count=c.count,
                        intensity=c.intensity,
                        band=c.band.label,
                        color=c.band.color,
                    )
                    for c in cells
                ],
            )
            for time, cells in view.heatmap.rows()
        ],
        participants=[
            ParticipantModel(id=p.id, name=p.name, available_slots=sorted(p.available_slots))
            for p in view.extraction.participants
        ],
        current_user_slots=sorted(view.extraction.current_user_slots),
        dropped_dates=list(aggregation.dropped_dates),
    )


@router.get("/events/{event_id}/results/slots/{slot}")
async def get_slot_disclosure(
    event_id: str,
    slot: str,
    viewer: Viewer,
    layout: Layout = Layout.POINTER,
) -> SlotDisclosureResponse:
    logger.info("GET /events/%s/results/slots/%s layout=%s", event_id, slot, layout.value)
    event = await load_event(event_id)
    if slot not in event_lattice(event):
        raise NotFoundError(detail="Slot not found", resource_type="slot", resource_id=slot)
    view = await _results(event, viewer)
    disclosure = present_disclosure(
        AggregateGrid(view.heatmap).click(slot),
        layout,
        show_emails=_shows_emails(event, viewer),
        preview_limit=get_settings().grid.disclosure_preview,
    )
    return SlotDisclosureResponse(
        slot_id=disclosure.slot_id,
        count=disclosure.count,
        surface=disclosure.surface.value,
        participants=[DisclosedParticipant(**p) for p in disclosure.participants],
        preview=disclosure.preview,
        remaining=disclosure.remaining,
    )


@router.get("/events/{event_id}/results/slots/{slot}/export.{fmt}")
async def export_slot_participants(
    event_id: str,
    slot: str,
    fmt: Literal["csv", "json"],
    viewer: Viewer,
) -> Response:
    logger.info("GET /events/%s/results/slots/%s/export.%s", event_id, slot, fmt)
    event = await load_event(event_id)
    if slot not in event_lattice(event):
        raise NotFoundError(detail="Slot not found", resource_type="slot", resource_id=slot)
    view = await _results(event, viewer)
    participants = view.heatmap.cell(slot).participants
    show_emails = _shows_emails(event, viewer)
    if fmt == "csv":
        return Response(participants_csv(participants, show_emails), media_type="text/csv")
    return Response(participants_json(participants, show_emails), media_type="application/json")


@router.get("/events/{event_id}/export.{fmt}")
async def export_grid(event_id: str, fmt: Literal["csv", "json"], viewer: Viewer) -> Response:
    logger.info("GET /events/%s/export.%s", event_id, fmt)
    event = await load_event(event_id)
    view = await _results(event, viewer)
    filename = f"availability-{event_id}.{fmt}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if fmt == "csv":
        return Response(grid_csv(view.heatmap), media_type="text/csv", headers=headers)
    return Response(
        grid_json(view.heatmap, _shows_emails(event, viewer)),
        media_type="application/json",
        headers=headers,
    )


@router.delete("/events/{event_id}/schedules/{schedule_id}")
async def delete_schedule(event_id: str, schedule_id: str, bus: OptionalBus) -> Dict[str, Any]:
    logger.info("DELETE /events/%s/schedules/%s", event_id, schedule_id)
    await load_event(event_id)
    if not await db.delete_schedule(event_id, schedule_id):
        logger.warning("Schedule not found: %s", schedule_id)
        raise NotFoundError(detail="Schedule not found", resource_type="schedule", resource_id=schedule_id)
    await _publish(
        bus,
        event_id,
        {
            "type": "schedule_deleted",
            "event_id": event_id,
            "schedule_id": schedule_id,
            "timestamp": _now(),
        },
    )
    return {"deleted": True, "schedule_id": schedule_id}
