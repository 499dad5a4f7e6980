import pytest

from meetgrid.core.identity import Participant, ParticipantExtraction, ViewerContext
from meetgrid.core.participation import (
    InMemoryScheduleMemory,
    ParticipationSession,
    SubmissionReceipt,
    build_submission_slots,
    validate_submission,
)
from meetgrid.errors import ValidationError


class FakeSubmit:
    def __init__(self, schedule_id="sched-1"):
        self.schedule_id = schedule_id
        self.calls = []

    async def __call__(self, event_id, identity, slots):
        self.calls.append((event_id, identity, slots))
        return SubmissionReceipt(schedule_id=self.schedule_id)


def _select(session, *cells):
    for cell in cells:
        session.grid.key_press(cell, "Enter")


class TestSubmissionSlots:
    def test_decoded_in_chronological_order(self):
        slots = build_submission_slots({"2025-01-21_08:00", "2025-01-20_09:30", "2025-01-20_09:00"})
        assert slots == [
            {"date": "2025-01-20", "time": "09:00"},
            {"date": "2025-01-20", "time": "09:30"},
            {"date": "2025-01-21", "time": "08:00"},
        ]


class TestValidation:
    def test_no_slots(self):
        with pytest.raises(ValidationError) as exc:
            validate_submission(frozenset(), ViewerContext(user_id="u"), "", "")
        assert exc.value.error_code == "NO_SLOTS_SELECTED"
        assert exc.value.status_code == 422

    @pytest.mark.parametrize("name,email", [("", "a@b.c"), ("Ann", ""), ("  ", "a@b.c")])
    def test_anonymous_needs_name_and_email(self, name, email):
        with pytest.raises(ValidationError) as exc:
            validate_submission(frozenset({"2025-01-20_09:00"}), ViewerContext(), name, email)
        assert exc.value.error_code == "PARTICIPANT_INFO_REQUIRED"

    def test_authenticated_needs_no_contact_details(self):
        validate_submission(frozenset({"2025-01-20_09:00"}), ViewerContext(user_id="u"), "", "")


class TestParticipationSession:
    @pytest.mark.asyncio
    async def test_anonymous_submit_remembers_schedule(self, lattice):
        memory = InMemoryScheduleMemory()
        session = ParticipationSession("evt", lattice, ViewerContext(), memory, name=" Ann ", email="ann@example.com")
        _select(session, "2025-01-20_09:30", "2025-01-20_09:00")
        submit = FakeSubmit()

        assert await session.submit(submit) == "sched-1"

        event_id, identity, slots = submit.calls[0]
        assert event_id == "evt"
        assert identity.name == "Ann"
        assert identity.schedule_id is None
        assert slots == [{"date": "2025-01-20", "time": "09:00"}, {"date": "2025-01-20", "time": "09:30"}]
        assert memory.get("evt") == "sched-1"
        assert session.viewer.remembered_schedule_id == "sched-1"
        assert session.has_unsaved_changes is False

    @pytest.mark.asyncio
    async def test_second_submit_sends_remembered_id(self, lattice):
        memory = InMemoryScheduleMemory()
        memory.remember("evt", "sched-1")
        session = ParticipationSession("evt", lattice, ViewerContext(), memory, name="Ann", email="ann@example.com")
        _select(session, "2025-01-20_09:00")
        submit = FakeSubmit()
        await session.submit(submit)
        assert submit.calls[0][1].schedule_id == "sched-1"

    @pytest.mark.asyncio
    async def test_authenticated_submit_does_not_remember(self, lattice):
        memory = InMemoryScheduleMemory()
        session = ParticipationSession("evt", lattice, ViewerContext(user_id="u1"), memory)
        _select(session, "2025-01-20_09:00")
        submit = FakeSubmit()
        await session.submit(submit)
        assert submit.calls[0][1].user_id == "u1"
        assert memory.get("evt") is None

    @pytest.mark.asyncio
    async def test_invalid_submit_calls_nothing(self, lattice):
        memory = InMemoryScheduleMemory()
        session = ParticipationSession("evt", lattice, ViewerContext(), memory, name="Ann")
        _select(session, "2025-01-20_09:00")
        submit = FakeSubmit()
        with pytest.raises(ValidationError):
            await session.submit(submit)
        assert submit.calls == []
        assert memory.get("evt") is None

    @pytest.mark.asyncio
    async def test_auto_save_skips_unchanged_and_invalid(self, lattice):
        session = ParticipationSession("evt", lattice, ViewerContext(), InMemoryScheduleMemory())
        submit = FakeSubmit()
        assert await session.auto_save(submit) is None
        _select(session, "2025-01-20_09:00")
        assert session.has_unsaved_changes is True
        assert await session.auto_save(submit) is None
        session.name, session.email = "Ann", "ann@example.com"
        assert await session.auto_save(submit) == "sched-1"
        assert await session.auto_save(submit) is None
        assert len(submit.calls) == 1

    def test_seed_only_into_empty_selection(self, lattice):
        extraction = ParticipantExtraction(
            participants=(Participant(id="s", name="Ann", available_slots=frozenset({"2025-01-20_09:00"})),),
            current_user_slots=frozenset({"2025-01-20_09:00", "2025-03-01_09:00"}),
        )
        session = ParticipationSession("evt", lattice, ViewerContext(remembered_schedule_id="s"), InMemoryScheduleMemory())
        assert session.seed(extraction) is True
        assert session.grid.committed == frozenset({"2025-01-20_09:00"})
        assert session.has_unsaved_changes is False

        other = ParticipationSession("evt", lattice, ViewerContext(remembered_schedule_id="s"), InMemoryScheduleMemory())
        _select(other, "2025-01-21_10:00")
        assert other.seed(extraction) is False
        assert other.grid.committed == frozenset({"2025-01-21_10:00"})
