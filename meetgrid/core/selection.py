"""Drag-to-select availability grid for a single participant.

The gesture is a small state machine::

    Idle --press--> PendingClick --enter other cell--> Dragging
      ^                 |   |                             |
      |    release (toggle) |  leave window (cancel)     release (apply mode)
      +-----------------+---+-----------------------------+

The select/deselect mode is fixed when the pointer goes down, so a drag that
crosses cells in mixed states still applies one consistent action. The
committed selection only changes when a gesture commits or a key toggles a
cell.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from meetgrid.core.slots import SlotLattice, format_time, parse_slot_id

logger = logging.getLogger(__name__)

TOGGLE_KEYS = frozenset({"Enter", " ", "Space", "Spacebar"})


class DragMode(str, Enum):
    SELECT = "select"
    DESELECT = "deselect"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class PendingClick:
    anchor: str
    mode: DragMode

    @property
    def drag_set(self) -> frozenset[str]:
        return frozenset({self.anchor})


@dataclass(frozen=True)
class Dragging:
    mode: DragMode
    drag_set: frozenset[str]


GestureState = Idle | PendingClick | Dragging

IDLE = Idle()


def apply_mode(committed: frozenset[str], cells: Iterable[str], mode: DragMode) -> frozenset[str]:
    if mode is DragMode.SELECT:
        return committed | frozenset(cells)
    return committed - frozenset(cells)


def press(state: GestureState, committed: frozenset[str], cell: str) -> PendingClick:
    # A press always starts a fresh gesture; a stale one is discarded.
    mode = DragMode.DESELECT if cell in committed else DragMode.SELECT
    return PendingClick(anchor=cell, mode=mode)


def enter(state: GestureState, cell: str) -> GestureState:
    if isinstance(state, PendingClick):
        if cell == state.anchor:
            return state
        return Dragging(mode=state.mode, drag_set=frozenset({state.anchor, cell}))
    if isinstance(state, Dragging):
        if cell in state.drag_set:
            return state
        return Dragging(mode=state.mode, drag_set=state.drag_set | {cell})
    return state


def release(
    state: GestureState, committed: frozenset[str]
) -> tuple[Idle, frozenset[str] | None]:
    """Finish the gesture. Returns the new committed set, or None if nothing was in progress."""
    if isinstance(state, (PendingClick, Dragging)):
        return IDLE, apply_mode(committed, state.drag_set, state.mode)
    return IDLE, None


def leave_window(state: GestureState) -> GestureState:
    # Only an undecided click is cancelled; a drag keeps going until release.
    if isinstance(state, PendingClick):
        return IDLE
    return state


@dataclass(frozen=True)
class CellView:
    slot_id: str
    selected: bool
    label: str


class SelectionGrid:
    """Editable grid holding one participant's committed selection.

    ``on_change`` is called with the new committed set after every completed
    gesture or key toggle.
    """

    def __init__(
        self,
        lattice: SlotLattice,
        selected: Iterable[str] = (),
        on_change: Callable[[frozenset[str]], None] | None = None,
    ) -> None:
        self.lattice = lattice
        self._committed = frozenset(lattice.require(s) for s in selected)
        self._state: GestureState = IDLE
        self._on_change = on_change

    @property
    def committed(self) -> frozenset[str]:
        return self._committed

    @property
    def state(self) -> GestureState:
        return self._state

    def set_committed(self, selected: Iterable[str]) -> None:
        """Replace the committed selection from outside, e.g. with the viewer's saved slots."""
        self._committed = frozenset(self.lattice.require(s) for s in selected)

    def pointer_down(self, cell: str) -> None:
        self._state = press(self._state, self._committed, self.lattice.require(cell))

    def pointer_enter(self, cell: str) -> None:
        self._state = enter(self._state, self.lattice.require(cell))

    def pointer_up(self) -> None:
        self._state, committed = release(self._state, self._committed)
        if committed is not None:
            self._commit(committed)

    def pointer_leave_window(self) -> None:
        self._state = leave_window(self._state)

    def key_press(self, cell: str, key: str) -> bool:
        if key not in TOGGLE_KEYS:
            return False
        cell = self.lattice.require(cell)
        mode = DragMode.DESELECT if cell in self._committed else DragMode.SELECT
        self._commit(apply_mode(self._committed, (cell,), mode))
        return True

    def is_selected(self, cell: str) -> bool:
        state = self._state
        if isinstance(state, (PendingClick, Dragging)) and cell in state.drag_set:
            return state.mode is DragMode.SELECT
        return cell in self._committed

    def cell(self, cell: str) -> CellView:
        selected = self.is_selected(self.lattice.require(cell))
        return CellView(slot_id=cell, selected=selected, label=cell_label(cell, selected))

    def rows(self) -> list[tuple[str, list[CellView]]]:
        return [
            (format_time(minutes), [self.cell(c) for c in cells])
            for minutes, cells in self.lattice.rows()
        ]

    def _commit(self, committed: frozenset[str]) -> None:
        added = len(committed - self._committed)
        removed = len(self._committed - committed)
        self._committed = committed
        logger.debug("selection committed added=%d removed=%d total=%d", added, removed, len(committed))
        if self._on_change is not None:
            self._on_change(committed)


def cell_label(cell: str, selected: bool) -> str:
    day, minutes = parse_slot_id(cell)
    status = "Selected" if selected else "Not selected"
    return f"{day.isoformat()} {format_time(minutes)} - {status}"
