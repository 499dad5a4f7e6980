"""How a disclosure request is shown to the viewer.

Pointer layouts get a hover panel that a click pins open; touch-only layouts
have no usable hover, so any tap opens a modal. The data shown is the same
either way.
"""

from dataclasses import dataclass
from enum import Enum

from meetgrid.core.heatmap import DisclosureRequest


class Layout(str, Enum):
    POINTER = "pointer"
    TOUCH = "touch"


class DisclosureSurface(str, Enum):
    PANEL = "panel"
    MODAL = "modal"


DEFAULT_PREVIEW_LIMIT = 5


@dataclass(frozen=True)
class DisclosureView:
    slot_id: str
    surface: DisclosureSurface
    count: int
    participants: list[dict[str, str]]
    preview: list[str]
    remaining: int


def choose_surface(layout: Layout) -> DisclosureSurface:
    return DisclosureSurface.MODAL if layout is Layout.TOUCH else DisclosureSurface.PANEL


def present_disclosure(
    request: DisclosureRequest,
    layout: Layout,
    show_emails: bool = False,
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> DisclosureView:
    participants = []
    for p in request.participants:
        entry = {"name": p.display_name}
        if show_emails and p.email:
            entry["email"] = p.email
        participants.append(entry)
    names = [p.display_name for p in request.participants]
    return DisclosureView(
        slot_id=request.slot_id,
        surface=choose_surface(layout),
        count=request.count,
        participants=participants,
        preview=names[:preview_limit],
        remaining=max(len(names) - preview_limit, 0),
    )
