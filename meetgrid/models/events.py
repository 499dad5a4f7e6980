from datetime import date
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator


class Event(BaseModel):
    id: str
    name: str
    description: str | None = None
    date_range_start: date
    date_range_end: date
    time_slot_duration: Literal[15, 30, 60]
    creator_id: str | None = None
    creator_can_see_emails: bool = False
    created_at: str | None = None


class CreateEventRequest(BaseModel):
    name: str
    description: str | None = None
    date_range_start: date
    date_range_end: date
    time_slot_duration: Literal[15, 30, 60] = 30
    creator_can_see_emails: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("name must be 1-200 characters")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "CreateEventRequest":
        if self.date_range_start > self.date_range_end:
            raise ValueError("date_range_start must not be after date_range_end")
        return self


class EventResponse(BaseModel):
    event: Event
    dates: list[str]
    times: list[str]
    slot_count: int
