"""Recognising the current viewer inside aggregated results.

Authenticated viewers are matched by user id. Anonymous viewers can only be
matched by the schedule id remembered after their first successful
submission; without one, nothing is theirs yet.
"""

from dataclasses import dataclass

from meetgrid.core.aggregation import AggregationResult


@dataclass(frozen=True)
class ViewerContext:
    user_id: str | None = None
    remembered_schedule_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def is_current_user_slot(owner_user_id: str | None, schedule_id: str, viewer: ViewerContext) -> bool:
    if viewer.is_authenticated:
        return owner_user_id == viewer.user_id
    if viewer.remembered_schedule_id is None:
        return False
    return schedule_id == viewer.remembered_schedule_id


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    available_slots: frozenset[str]
    email: str | None = None


@dataclass(frozen=True)
class ParticipantExtraction:
    participants: tuple[Participant, ...]
    current_user_slots: frozenset[str]


def extract_participants(result: AggregationResult, viewer: ViewerContext) -> ParticipantExtraction:
    """Rebuild per-participant slot sets and the viewer's own selection."""
    slots_by_schedule: dict[str, set[str]] = {}
    first_seen: dict[str, tuple[str, str | None]] = {}
    current: set[str] = set()

    for aggregation in result.slots:
        sid = aggregation.slot_id
        for p in aggregation.participants:
            first_seen.setdefault(p.schedule_id, (p.display_name, p.email))
            slots_by_schedule.setdefault(p.schedule_id, set()).add(sid)
            if is_current_user_slot(p.user_id, p.schedule_id, viewer):
                current.add(sid)

    participants = tuple(
        Participant(
            id=schedule_id,
            name=first_seen[schedule_id][0],
            email=first_seen[schedule_id][1],
            available_slots=frozenset(slots),
        )
        for schedule_id, slots in slots_by_schedule.items()
    )
    return ParticipantExtraction(participants=participants, current_user_slots=frozenset(current))
