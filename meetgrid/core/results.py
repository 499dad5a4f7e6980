import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from meetgrid.core.aggregation import (
    DEFAULT_BEST_SLOTS_LIMIT,
    AggregationResult,
    BestSlot,
    aggregate_rows,
)
from meetgrid.core.heatmap import Heatmap, build_heatmap
from meetgrid.core.identity import ParticipantExtraction, ViewerContext, extract_participants
from meetgrid.core.slots import SlotLattice
from meetgrid.errors import AggregationFetchError

logger = logging.getLogger(__name__)

FetchAggregatedSlots = Callable[[], Awaitable[Iterable[Any]]]


@dataclass(frozen=True)
class ResultsView:
    aggregation: AggregationResult
    heatmap: Heatmap
    best_slots: list[BestSlot]
    extraction: ParticipantExtraction


async def load_results(
    lattice: SlotLattice,
    fetch: FetchAggregatedSlots,
    viewer: ViewerContext,
    best_slots_limit: int = DEFAULT_BEST_SLOTS_LIMIT,
) -> ResultsView:
    """Await the aggregated rows once, then run a single aggregation pass over them.

    A failed fetch raises :class:`AggregationFetchError`; nothing is rendered
    from partial data and nothing is retried here.
    """
    try:
        rows = list(await fetch())
    except Exception as e:
        logger.exception("Failed to fetch aggregated slots")
        raise AggregationFetchError(detail=f"Failed to fetch aggregated time slots: {e}") from e

    aggregation = aggregate_rows(rows)
    return ResultsView(
        aggregation=aggregation,
        heatmap=build_heatmap(lattice, aggregation),
        best_slots=aggregation.best_slots(best_slots_limit),
        extraction=extract_participants(aggregation, viewer),
    )
