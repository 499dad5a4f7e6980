"""Slot identifiers and the slot lattice shared by every grid.

A slot is one atomic (calendar date, minute-of-day) interval of
``time_slot_duration`` minutes. Its identifier is ``YYYY-MM-DD_HH:MM``:

    >>> slot_id(date(2025, 1, 20), 540)
    '2025-01-20_09:00'
    >>> parse_slot_id("2025-01-20_09:00")
    (datetime.date(2025, 1, 20), 540)

Dates are timezone-naive calendar dates. Converting stored timestamps to a
calendar date happens before anything reaches this module.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from functools import cached_property
from typing import Final, Iterator

MINUTES_PER_DAY: Final[int] = 1440
SLOT_DURATIONS: Final[tuple[int, ...]] = (15, 30, 60)

# Seconds are accepted only as ":00" so older "HH:MM:SS" identifiers still decode.
SLOT_ID_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})_((?:[01]\d|2[0-3]):[0-5]\d)(?::00)?$")
TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")


class SlotIdError(ValueError):
    """Raised for malformed slot identifiers or impossible lattice parameters.

    Identifiers are always generated by code, so this signals a programming
    error rather than bad user input.
    """


def format_time(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise SlotIdError(f"minute of day out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time(value: str) -> int:
    if not TIME_RE.match(value):
        raise SlotIdError(f"invalid time of day: {value!r}")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def slot_id(day: date, start_time: int) -> str:
    return f"{day.isoformat()}_{format_time(start_time)}"


def parse_slot_id(value: str) -> tuple[date, int]:
    """Invert :func:`slot_id`, returning ``(date, start_time_minutes)``."""
    match = SLOT_ID_RE.match(value) if isinstance(value, str) else None
    if not match:
        raise SlotIdError(f"invalid slot id: {value!r}")
    try:
        day = date.fromisoformat(match.group(1))
    except ValueError as e:
        raise SlotIdError(f"invalid slot id: {value!r}") from e
    return day, parse_time(match.group(2))


def date_range(start: date, end: date) -> list[date]:
    """Every calendar date from ``start`` to ``end`` inclusive."""
    if start > end:
        raise SlotIdError(f"date range start {start} is after end {end}")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def day_times(duration: int) -> list[int]:
    if duration not in SLOT_DURATIONS:
        raise SlotIdError(f"unsupported slot duration: {duration}")
    return list(range(0, MINUTES_PER_DAY, duration))


@dataclass(frozen=True)
class SlotLattice:
    """The date x time-of-day grid of an event.

    Rows are times of day, columns are dates; iteration order is row-major.
    """

    dates: tuple[date, ...]
    times: tuple[int, ...]
    duration: int

    @cached_property
    def _ids(self) -> frozenset[str]:
        return frozenset(self.slot_ids())

    def slot_ids(self) -> list[str]:
        return [slot_id(day, minutes) for minutes in self.times for day in self.dates]

    def rows(self) -> Iterator[tuple[int, list[str]]]:
        for minutes in self.times:
            yield minutes, [slot_id(day, minutes) for day in self.dates]

    def end_time(self, start_time: int) -> int:
        return start_time + self.duration

    def require(self, value: str) -> str:
        if value not in self._ids:
            raise SlotIdError(f"slot {value!r} is not part of this lattice")
        return value

    def __contains__(self, value: object) -> bool:
        return value in self._ids

    def __len__(self) -> int:
        return len(self.dates) * len(self.times)

    def __iter__(self) -> Iterator[str]:
        return iter(self.slot_ids())


def build_lattice(start: date, end: date, duration: int) -> SlotLattice:
    return SlotLattice(
        dates=tuple(date_range(start, end)),
        times=tuple(day_times(duration)),
        duration=duration,
    )
