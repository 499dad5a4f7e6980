from typing import Literal, TypedDict


class AvailabilityUpdatedEvent(TypedDict):
    type: Literal["availability_updated"]
    event_id: str
    schedule_id: str
    slot_count: int
    timestamp: str


class ScheduleDeletedEvent(TypedDict):
    type: Literal["schedule_deleted"]
    event_id: str
    schedule_id: str
    timestamp: str


# Everything a results page subscribed to an event's channel may receive
AvailabilityEvent = AvailabilityUpdatedEvent | ScheduleDeletedEvent
