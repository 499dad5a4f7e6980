"""CSV and JSON downloads of the heatmap and of a single cell's participants."""

import csv
import io
import json
from typing import Any, Iterable

from meetgrid.core.aggregation import SlotParticipant
from meetgrid.core.heatmap import Heatmap
from meetgrid.core.slots import format_time, parse_slot_id


def _grid_records(heatmap: Heatmap) -> Iterable[tuple[str, str, tuple[SlotParticipant, ...]]]:
    for slot in heatmap.lattice:
        day, minutes = parse_slot_id(slot)
        yield day.isoformat(), format_time(minutes), heatmap.cells[slot].participants


def _participant_entry(p: SlotParticipant, show_emails: bool) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": p.display_name}
    if show_emails and p.email:
        entry["email"] = p.email
    return entry


def grid_csv(heatmap: Heatmap) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Date", "Time", "Participants", "Count"])
    for day, time, participants in _grid_records(heatmap):
        writer.writerow([day, time, ", ".join(p.display_name for p in participants), len(participants)])
    return buf.getvalue()


def grid_json(heatmap: Heatmap, show_emails: bool = False) -> str:
    data = [
        {
            "date": day,
            "time": time,
            "participants": [_participant_entry(p, show_emails) for p in participants],
            "count": len(participants),
        }
        for day, time, participants in _grid_records(heatmap)
    ]
    return json.dumps(data, indent=2)


def participants_csv(participants: Iterable[SlotParticipant], show_emails: bool = False) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Name", "Email"] if show_emails else ["Name"])
    for p in participants:
        row = [p.display_name]
        if show_emails and p.email:
            row.append(p.email)
        writer.writerow(row)
    return buf.getvalue()


def participants_json(participants: Iterable[SlotParticipant], show_emails: bool = False) -> str:
    return json.dumps([_participant_entry(p, show_emails) for p in participants], indent=2)
