"""Per-slot aggregation of every participant's availability.

One call is one aggregation pass over an immutable snapshot of schedules (or
of already-aggregated transport rows). Nothing is cached between passes; the
result carries everything later steps need.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from functools import cached_property
from typing import Any, Iterable, Protocol

from meetgrid.core.slots import slot_id

logger = logging.getLogger(__name__)

DEFAULT_BEST_SLOTS_LIMIT = 5


class AvailabilityLike(Protocol):
    date: Any
    start_time: int
    end_time: int


class ScheduleLike(Protocol):
    id: str
    display_name: str
    user_id: str | None
    availabilities: Iterable[AvailabilityLike]


@dataclass(frozen=True)
class SlotParticipant:
    schedule_id: str
    display_name: str
    user_id: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class SlotAggregation:
    date: date
    start_time: int
    end_time: int
    participants: tuple[SlotParticipant, ...]

    @property
    def slot_id(self) -> str:
        return slot_id(self.date, self.start_time)

    @property
    def participant_count(self) -> int:
        return len(self.participants)


@dataclass(frozen=True)
class BestSlot:
    slot: SlotAggregation
    percentage: float


@dataclass(frozen=True)
class AggregationResult:
    slots: tuple[SlotAggregation, ...]
    dropped_dates: tuple[str, ...] = field(default=())

    @cached_property
    def by_slot_id(self) -> dict[str, SlotAggregation]:
        return {s.slot_id: s for s in self.slots}

    @cached_property
    def total_participants(self) -> int:
        return len({p.schedule_id for s in self.slots for p in s.participants})

    def participant_count(self, slot: str) -> int:
        found = self.by_slot_id.get(slot)
        return found.participant_count if found else 0

    def participants_for(self, slot: str) -> tuple[SlotParticipant, ...]:
        found = self.by_slot_id.get(slot)
        return found.participants if found else ()

    def best_slots(self, limit: int = DEFAULT_BEST_SLOTS_LIMIT) -> list[BestSlot]:
        return rank_best_slots(self.slots, self.total_participants, limit)


def parse_calendar_date(value: Any) -> date:
    """Turn a stored date value into a calendar date.

    Accepts ``date`` objects, ``YYYY-MM-DD`` strings and ISO-8601 instants such
    as ``2025-01-20T00:00:00.000Z``; instants are read in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"unsupported date value: {value!r}")
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed.date()


class _SlotGroups:
    """Accumulates participants per (date, start, end) for a single pass."""

    def __init__(self) -> None:
        self._dates: dict[Any, date | None] = {}
        self._dropped: list[str] = []
        self._groups: dict[tuple[date, int, int], dict[str, SlotParticipant]] = {}

    def resolve_date(self, raw: Any) -> date | None:
        key = raw if isinstance(raw, (str, date)) else repr(raw)
        if key not in self._dates:
            try:
                self._dates[key] = parse_calendar_date(raw)
            except ValueError as e:
                logger.warning("Dropping availability for unparseable date %r: %s", raw, e)
                self._dates[key] = None
                self._dropped.append(str(raw))
        return self._dates[key]

    def add(self, raw_date: Any, start_time: int, end_time: int, participant: SlotParticipant) -> None:
        day = self.resolve_date(raw_date)
        if day is None:
            return
        group = self._groups.setdefault((day, start_time, end_time), {})
        # One schedule counts once per slot even if it holds duplicate rows.
        group.setdefault(participant.schedule_id, participant)

    def result(self) -> AggregationResult:
        slots = sorted(
            (
                SlotAggregation(
                    date=day,
                    start_time=start,
                    end_time=end,
                    participants=tuple(participants.values()),
                )
                for (day, start, end), participants in self._groups.items()
            ),
            key=lambda s: (s.date, s.start_time, s.end_time),
        )
        return AggregationResult(slots=tuple(slots), dropped_dates=tuple(self._dropped))


def aggregate_schedules(schedules: Iterable[ScheduleLike]) -> AggregationResult:
    """Group every schedule's availability rows into per-slot aggregations."""
    groups = _SlotGroups()
    schedule_count = 0
    for schedule in schedules:
        schedule_count += 1
        participant = SlotParticipant(
            schedule_id=schedule.id,
            display_name=schedule.display_name,
            user_id=schedule.user_id,
            email=getattr(schedule, "email", None),
        )
        for availability in schedule.availabilities:
            groups.add(availability.date, availability.start_time, availability.end_time, participant)
    result = groups.result()
    logger.debug(
        "aggregated schedules=%d slots=%d dropped_dates=%d",
        schedule_count,
        len(result.slots),
        len(result.dropped_dates),
    )
    return result


def aggregate_rows(rows: Iterable[Any]) -> AggregationResult:
    """Re-derive aggregations from transport rows.

    Slot identity comes from each row's (date, start_time, end_time); counts are
    recomputed from the distinct participants rather than trusted.
    """
    groups = _SlotGroups()
    for row in rows:
        for p in row.participants:
            groups.add(
                row.date,
                row.start_time,
                row.end_time,
                SlotParticipant(
                    schedule_id=p.schedule_id,
                    display_name=p.display_name,
                    user_id=p.user_id,
                    email=getattr(p, "email", None),
                ),
            )
    return groups.result()


def rank_best_slots(
    slots: Iterable[SlotAggregation],
    total_participants: int,
    limit: int = DEFAULT_BEST_SLOTS_LIMIT,
) -> list[BestSlot]:
    """Top ``limit`` slots by participant count, ties broken chronologically."""
    ranked = sorted(slots, key=lambda s: (-s.participant_count, s.date, s.start_time))
    return [
        BestSlot(
            slot=s,
            percentage=(s.participant_count / total_participants * 100) if total_participants else 0.0,
        )
        for s in ranked[:limit]
    ]
