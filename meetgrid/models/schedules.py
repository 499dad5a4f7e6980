from typing import Literal

from pydantic import BaseModel, field_validator

from meetgrid.core.slots import TIME_RE


class Availability(BaseModel):
    # Kept as the stored string so an unparseable value can be dropped during aggregation.
    date: str
    start_time: int
    end_time: int


class Schedule(BaseModel):
    id: str
    event_id: str
    user_id: str | None = None
    display_name: str
    email: str | None = None
    availabilities: list[Availability] = []
    created_at: str | None = None
    updated_at: str | None = None


class SlotParticipant(BaseModel):
    schedule_id: str
    display_name: str
    user_id: str | None = None
    email: str | None = None


class TimeSlotAggregationRaw(BaseModel):
    date: str
    start_time: int
    end_time: int
    participant_count: int
    participants: list[SlotParticipant]


class SubmittedSlot(BaseModel):
    date: str
    time: str

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not TIME_RE.match(v):
            raise ValueError(f"invalid time format: {v}")
        return v


class SubmitAvailabilityRequest(BaseModel):
    slots: list[SubmittedSlot]
    participant_name: str | None = None
    participant_email: str | None = None
    schedule_id: str | None = None

    @field_validator("participant_name")
    @classmethod
    def validate_participant_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) > 100:
            raise ValueError("participant_name must be at most 100 characters")
        return v

    @field_validator("participant_email")
    @classmethod
    def validate_participant_email(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if v and ("@" not in v or len(v) > 254):
            raise ValueError(f"invalid email: {v}")
        return v


class SubmitAvailabilityResponse(BaseModel):
    schedule_id: str
    slot_count: int


class BestSlotModel(BaseModel):
    slot_id: str
    date: str
    start_time: int
    end_time: int
    participant_count: int
    percentage: float


class HeatmapCellModel(BaseModel):
    slot_id: str
    count: int
    intensity: float
    band: str
    color: str


class HeatmapRowModel(BaseModel):
    time: str
    cells: list[HeatmapCellModel]


class ParticipantModel(BaseModel):
    id: str
    name: str
    available_slots: list[str]


class ResultsResponse(BaseModel):
    event_id: str
    total_participants: int
    max_count: int
    slots: list[TimeSlotAggregationRaw]
    best_slots: list[BestSlotModel]
    heatmap: list[HeatmapRowModel]
    participants: list[ParticipantModel]
    current_user_slots: list[str]
    dropped_dates: list[str] = []


class DisclosedParticipant(BaseModel):
    name: str
    email: str | None = None


class SlotDisclosureResponse(BaseModel):
    slot_id: str
    count: int
    surface: Literal["panel", "modal"]
    participants: list[DisclosedParticipant]
    preview: list[str]
    remaining: int
