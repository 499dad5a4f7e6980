"""Availability grid and aggregation engine.

Everything here is synchronous and side-effect free apart from logging, except
the two awaited collaborator calls in ``participation`` and ``results``.
"""

from meetgrid.core.aggregation import (
    AggregationResult,
    BestSlot,
    SlotAggregation,
    SlotParticipant,
    aggregate_rows,
    aggregate_schedules,
    rank_best_slots,
)
from meetgrid.core.heatmap import AggregateGrid, Band, DisclosureRequest, Heatmap, band_for, build_heatmap
from meetgrid.core.identity import ViewerContext, extract_participants, is_current_user_slot
from meetgrid.core.selection import SelectionGrid
from meetgrid.core.slots import SlotIdError, SlotLattice, build_lattice, parse_slot_id, slot_id

__all__ = [
    "AggregateGrid",
    "AggregationResult",
    "Band",
    "BestSlot",
    "DisclosureRequest",
    "Heatmap",
    "SelectionGrid",
    "SlotAggregation",
    "SlotIdError",
    "SlotLattice",
    "SlotParticipant",
    "ViewerContext",
    "aggregate_rows",
    "aggregate_schedules",
    "band_for",
    "build_heatmap",
    "build_lattice",
    "extract_participants",
    "is_current_user_slot",
    "parse_slot_id",
    "rank_best_slots",
    "slot_id",
]
