"""One participant's submission flow around a :class:`SelectionGrid`.

The session turns the committed selection into ``{date, time}`` pairs,
validates it, hands it to the submit collaborator, and for anonymous
participants remembers the returned schedule id so they can be recognised
on later visits.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Protocol, TypedDict

from meetgrid.core.identity import ParticipantExtraction, ViewerContext
from meetgrid.core.selection import SelectionGrid
from meetgrid.core.slots import SlotLattice, format_time, parse_slot_id
from meetgrid.errors import ValidationError

logger = logging.getLogger(__name__)


class SubmittedSlot(TypedDict):
    date: str
    time: str


@dataclass(frozen=True)
class ParticipantIdentity:
    user_id: str | None = None
    name: str = ""
    email: str = ""
    schedule_id: str | None = None


@dataclass(frozen=True)
class SubmissionReceipt:
    schedule_id: str


SubmitAvailability = Callable[[str, ParticipantIdentity, list[SubmittedSlot]], Awaitable[SubmissionReceipt]]


class ScheduleMemory(Protocol):
    """Where an anonymous participant's schedule id is kept between visits."""

    def get(self, event_id: str) -> str | None: ...

    def remember(self, event_id: str, schedule_id: str) -> None: ...


class InMemoryScheduleMemory:
    def __init__(self) -> None:
        self._ids: dict[str, str] = {}

    def get(self, event_id: str) -> str | None:
        return self._ids.get(event_id)

    def remember(self, event_id: str, schedule_id: str) -> None:
        self._ids[event_id] = schedule_id


def build_submission_slots(selected: Iterable[str]) -> list[SubmittedSlot]:
    """Decode slot ids into chronologically ordered ``{date, time}`` pairs."""
    decoded = sorted(parse_slot_id(s) for s in selected)
    return [{"date": day.isoformat(), "time": format_time(minutes)} for day, minutes in decoded]


def validate_submission(selected: frozenset[str], viewer: ViewerContext, name: str, email: str) -> None:
    if not selected:
        raise ValidationError(
            detail="Select at least one time slot",
            error_code="NO_SLOTS_SELECTED",
        )
    if not viewer.is_authenticated and (not name.strip() or not email.strip()):
        raise ValidationError(
            detail="Enter your name and email",
            error_code="PARTICIPANT_INFO_REQUIRED",
        )


class ParticipationSession:
    def __init__(
        self,
        event_id: str,
        lattice: SlotLattice,
        viewer: ViewerContext,
        memory: ScheduleMemory,
        name: str = "",
        email: str = "",
    ) -> None:
        self.event_id = event_id
        self.viewer = viewer
        self.memory = memory
        self.name = name
        self.email = email
        self.grid = SelectionGrid(lattice)
        self.last_submitted: frozenset[str] = frozenset()

    @property
    def has_unsaved_changes(self) -> bool:
        return self.grid.committed != self.last_submitted

    def seed(self, extraction: ParticipantExtraction) -> bool:
        """Load the viewer's saved slots, but only into an empty selection."""
        if self.grid.committed or not extraction.current_user_slots:
            return False
        saved = {s for s in extraction.current_user_slots if s in self.grid.lattice}
        self.grid.set_committed(saved)
        self.last_submitted = self.grid.committed
        return True

    def identity(self) -> ParticipantIdentity:
        if self.viewer.is_authenticated:
            return ParticipantIdentity(user_id=self.viewer.user_id, name=self.name, email=self.email)
        return ParticipantIdentity(
            name=self.name.strip(),
            email=self.email.strip(),
            schedule_id=self.memory.get(self.event_id),
        )

    async def submit(self, submit: SubmitAvailability) -> str:
        selected = self.grid.committed
        validate_submission(selected, self.viewer, self.name, self.email)
        slots = build_submission_slots(selected)
        receipt = await submit(self.event_id, self.identity(), slots)
        if not self.viewer.is_authenticated:
            self.memory.remember(self.event_id, receipt.schedule_id)
            self.viewer = ViewerContext(remembered_schedule_id=receipt.schedule_id)
        self.last_submitted = selected
        logger.info("Submitted %d slots for event %s schedule=%s", len(slots), self.event_id, receipt.schedule_id)
        return receipt.schedule_id

    async def auto_save(self, submit: SubmitAvailability) -> str | None:
        """Submit quietly, skipping when nothing changed or the form is incomplete."""
        if not self.has_unsaved_changes:
            return None
        try:
            validate_submission(self.grid.committed, self.viewer, self.name, self.email)
        except ValidationError:
            return None
        return await self.submit(submit)
