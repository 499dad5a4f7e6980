"""Async HTTP client for the meetgrid API.

Its methods match the collaborator callables the participation and results
flows await, so a client-side session can be driven against a live server:

    async with MeetgridClient("http://localhost:8000") as api:
        await session.submit(api.submit_availability)
        view = await load_results(lattice, partial(api.get_aggregated_slots, event_id), viewer)
"""

import logging

import httpx

from meetgrid.core.participation import ParticipantIdentity, SubmissionReceipt, SubmittedSlot
from meetgrid.models.events import EventResponse
from meetgrid.models.schedules import TimeSlotAggregationRaw

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class MeetgridClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "MeetgridClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, headers: dict | None = None, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("API request failed: %s %s -> %s", method, path, e)
            raise
        if resp.status_code >= 400:
            logger.error("API error: %s %s -> %d", method, path, resp.status_code)
            resp.raise_for_status()
        return resp

    async def get_event(self, event_id: str) -> EventResponse:
        resp = await self._request("GET", f"/events/{event_id}")
        return EventResponse.model_validate(resp.json())

    async def submit_availability(
        self,
        event_id: str,
        identity: ParticipantIdentity,
        slots: list[SubmittedSlot],
    ) -> SubmissionReceipt:
        headers = {"X-User-Id": identity.user_id} if identity.user_id else None
        body = {
            "slots": slots,
            "participant_name": identity.name or None,
            "participant_email": identity.email or None,
            "schedule_id": identity.schedule_id,
        }
        resp = await self._request("POST", f"/events/{event_id}/availability", headers=headers, json=body)
        return SubmissionReceipt(schedule_id=resp.json()["schedule_id"])

    async def get_aggregated_slots(self, event_id: str) -> list[TimeSlotAggregationRaw]:
        resp = await self._request("GET", f"/events/{event_id}/slots")
        return [TimeSlotAggregationRaw.model_validate(row) for row in resp.json()]
