import pytest

from meetgrid.core.heatmap import Band
from meetgrid.core.identity import ViewerContext
from meetgrid.core.results import load_results
from meetgrid.errors import AggregationFetchError
from meetgrid.models.schedules import TimeSlotAggregationRaw


def _rows():
    return [
        TimeSlotAggregationRaw(
            date="2025-01-20",
            start_time=540,
            end_time=570,
            participant_count=2,
            participants=[
                {"schedule_id": "A", "display_name": "Alice", "user_id": "u-a"},
                {"schedule_id": "B", "display_name": "Bob"},
            ],
        ),
        TimeSlotAggregationRaw(
            date="2025-01-20",
            start_time=570,
            end_time=600,
            participant_count=1,
            participants=[{"schedule_id": "A", "display_name": "Alice", "user_id": "u-a"}],
        ),
    ]


class TestLoadResults:
    @pytest.mark.asyncio
    async def test_single_pass_builds_every_view(self, lattice):
        calls = []

        async def fetch():
            calls.append(1)
            return _rows()

        view = await load_results(lattice, fetch, ViewerContext(user_id="u-a"))

        assert calls == [1]
        assert view.aggregation.total_participants == 2
        assert [b.slot.slot_id for b in view.best_slots] == ["2025-01-20_09:00", "2025-01-20_09:30"]
        assert view.heatmap.cell("2025-01-20_09:00").band is Band.A
        assert view.extraction.current_user_slots == frozenset({"2025-01-20_09:00", "2025-01-20_09:30"})

    @pytest.mark.asyncio
    async def test_best_slots_limit(self, lattice):
        async def fetch():
            return _rows()

        view = await load_results(lattice, fetch, ViewerContext(), best_slots_limit=1)
        assert len(view.best_slots) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_raises_page_level_error(self, lattice):
        async def fetch():
            raise ConnectionError("upstream down")

        with pytest.raises(AggregationFetchError) as exc:
            await load_results(lattice, fetch, ViewerContext())
        assert exc.value.status_code == 502
        assert exc.value.error_code == "AGGREGATION_FETCH_FAILED"
        assert isinstance(exc.value.__cause__, ConnectionError)
