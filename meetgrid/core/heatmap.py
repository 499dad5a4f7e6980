"""Read-only heatmap over the event lattice.

Each cell's intensity is its participant count divided by the busiest cell's
count (never less than 1). Intensities fall into five discrete bands so the
palette stays legible; empty cells get no fill.

Revealing who is available in a cell is reported as a ``DisclosureRequest``.
Whether that becomes a hover panel or a modal is decided by the caller.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from meetgrid.core.aggregation import AggregationResult, SlotParticipant
from meetgrid.core.slots import SlotLattice, format_time, parse_slot_id

logger = logging.getLogger(__name__)


class Band(Enum):
    A = ("A", "green.6")
    B = ("B", "green.4")
    C = ("C", "yellow.5")
    D = ("D", "orange.4")
    E = ("E", "red.3")
    NONE = ("none", "gray.1")

    def __init__(self, label: str, color: str) -> None:
        self.label = label
        self.color = color


# Strongest first; the first threshold an intensity reaches wins.
BAND_THRESHOLDS: tuple[tuple[float, Band], ...] = (
    (0.8, Band.A),
    (0.6, Band.B),
    (0.4, Band.C),
    (0.2, Band.D),
)


def band_for(count: int, max_count: int) -> Band:
    if count <= 0:
        return Band.NONE
    intensity = count / max(max_count, 1)
    for threshold, band in BAND_THRESHOLDS:
        if intensity >= threshold:
            return band
    return Band.E


@dataclass(frozen=True)
class HeatmapCell:
    slot_id: str
    count: int
    intensity: float
    band: Band
    participants: tuple[SlotParticipant, ...]

    @property
    def label(self) -> str:
        day, minutes = parse_slot_id(self.slot_id)
        return f"{day.isoformat()} {format_time(minutes)} - {self.count} participants available"


@dataclass(frozen=True)
class Heatmap:
    lattice: SlotLattice
    cells: dict[str, HeatmapCell]
    max_count: int

    def cell(self, slot: str) -> HeatmapCell:
        return self.cells[self.lattice.require(slot)]

    def rows(self) -> list[tuple[str, list[HeatmapCell]]]:
        return [
            (format_time(minutes), [self.cells[s] for s in slot_ids])
            for minutes, slot_ids in self.lattice.rows()
        ]


def build_heatmap(lattice: SlotLattice, result: AggregationResult) -> Heatmap:
    participants = {s: result.participants_for(s) for s in lattice}
    max_count = max((len(p) for p in participants.values()), default=0)
    max_count = max(max_count, 1)
    cells = {
        s: HeatmapCell(
            slot_id=s,
            count=len(p),
            intensity=len(p) / max_count,
            band=band_for(len(p), max_count),
            participants=p,
        )
        for s, p in participants.items()
    }
    outside = [s.slot_id for s in result.slots if s.slot_id not in lattice]
    if outside:
        logger.debug("heatmap ignoring %d aggregated slots outside the lattice", len(outside))
    return Heatmap(lattice=lattice, cells=cells, max_count=max_count)


class DisclosureTrigger(str, Enum):
    HOVER = "hover"
    CLICK = "click"


@dataclass(frozen=True)
class DisclosureRequest:
    slot_id: str
    trigger: DisclosureTrigger
    pinned: bool
    count: int
    participants: tuple[SlotParticipant, ...]


class AggregateGrid:
    """Non-editable grid that reports hover and click disclosure requests.

    Hovering reveals a cell; clicking pins it open, and clicking the pinned
    cell again unpins it.
    """

    def __init__(
        self,
        heatmap: Heatmap,
        on_disclose: Callable[[DisclosureRequest], None] | None = None,
    ) -> None:
        self.heatmap = heatmap
        self._on_disclose = on_disclose
        self.hovered: str | None = None
        self.pinned: str | None = None

    def hover(self, slot: str) -> DisclosureRequest:
        self.hovered = slot
        return self._disclose(slot, DisclosureTrigger.HOVER)

    def leave(self, slot: str) -> None:
        if self.hovered == slot:
            self.hovered = None

    def click(self, slot: str) -> DisclosureRequest:
        self.pinned = None if self.pinned == slot else slot
        return self._disclose(slot, DisclosureTrigger.CLICK)

    def is_disclosed(self, slot: str) -> bool:
        return slot in (self.hovered, self.pinned)

    def _disclose(self, slot: str, trigger: DisclosureTrigger) -> DisclosureRequest:
        cell = self.heatmap.cell(slot)
        request = DisclosureRequest(
            slot_id=slot,
            trigger=trigger,
            pinned=self.pinned == slot,
            count=cell.count,
            participants=cell.participants,
        )
        if self._on_disclose is not None:
            self._on_disclose(request)
        return request
