import secrets
import string
from datetime import UTC, date, datetime
from typing import Any

from psycopg import errors as pg_errors

from meetgrid.db.core import _get_connection

_EVENT_COLUMNS = (
    "id, name, description, date_range_start, date_range_end, time_slot_duration, "
    "creator_id, creator_can_see_emails, created_at"
)


def _generate_id(length: int = 10) -> str:
    chars = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(chars) for _ in range(length))


def _event_from_row(row: tuple) -> dict[str, Any]:
    return {
        "id": row[0],
        "name": row[1],
        "description": row[2],
        "date_range_start": row[3].isoformat(),
        "date_range_end": row[4].isoformat(),
        "time_slot_duration": row[5],
        "creator_id": row[6],
        "creator_can_see_emails": row[7],
        "created_at": row[8].astimezone(UTC).isoformat(),
    }


async def create_event(
    name: str,
    date_range_start: date,
    date_range_end: date,
    time_slot_duration: int,
    description: str | None = None,
    creator_id: str | None = None,
    creator_can_see_emails: bool = False,
) -> dict[str, Any]:
    now = datetime.now(UTC)
    async with _get_connection() as conn:
        for _ in range(10):
            event_id = _generate_id()
            try:
                await conn.execute(
                    f"""INSERT INTO events ({_EVENT_COLUMNS})
                       VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                    (
                        event_id,
                        name,
                        description,
                        date_range_start,
                        date_range_end,
                        time_slot_duration,
                        creator_id,
                        creator_can_see_emails,
                        now,
                    ),
                )
                return _event_from_row(
                    (
                        event_id,
                        name,
                        description,
                        date_range_start,
                        date_range_end,
                        time_slot_duration,
                        creator_id,
                        creator_can_see_emails,
                        now,
                    )
                )
            except pg_errors.UniqueViolation:
                continue
        raise RuntimeError("Failed to generate unique event ID")


async def get_event(event_id: str) -> dict[str, Any] | None:
    async with _get_connection() as conn:
        cur = await conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = %s", (event_id,))
        row = await cur.fetchone()
        if not row:
            return None
        return _event_from_row(row)
