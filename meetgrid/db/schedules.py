import logging
from datetime import UTC, date, datetime
from typing import Any

from meetgrid.db.core import _get_connection
from meetgrid.db.events import _generate_id

logger = logging.getLogger(__name__)

_SCHEDULE_COLUMNS = "id, event_id, user_id, display_name, email, created_at, updated_at"


def _schedule_from_row(row: tuple) -> dict[str, Any]:
    return {
        "id": row[0],
        "event_id": row[1],
        "user_id": row[2],
        "display_name": row[3],
        "email": row[4],
        "created_at": row[5].astimezone(UTC).isoformat(),
        "updated_at": row[6].astimezone(UTC).isoformat(),
        "availabilities": [],
    }


def _date_value(value: Any) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


async def _attach_availabilities(conn, schedules: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not schedules:
        return schedules
    by_id = {s["id"]: s for s in schedules}
    cur = await conn.execute(
        """SELECT schedule_id, date, start_time, end_time FROM availabilities
           WHERE schedule_id = ANY(%s) ORDER BY date, start_time""",
        (list(by_id),),
    )
    async for schedule_id, day, start_time, end_time in cur:
        by_id[schedule_id]["availabilities"].append(
            {"date": _date_value(day), "start_time": start_time, "end_time": end_time}
        )
    return schedules


async def fetch_schedules(event_id: str) -> list[dict[str, Any]]:
    async with _get_connection() as conn:
        cur = await conn.execute(
            f"SELECT {_SCHEDULE_COLUMNS} FROM schedules WHERE event_id = %s ORDER BY created_at DESC",
            (event_id,),
        )
        schedules = [_schedule_from_row(row) async for row in cur]
        return await _attach_availabilities(conn, schedules)


async def find_schedule(
    event_id: str,
    user_id: str | None = None,
    schedule_id: str | None = None,
) -> dict[str, Any] | None:
    """Find a participant's schedule by user id, or by schedule id for anonymous participants."""
    if user_id is not None:
        clause, param = "user_id = %s", user_id
    elif schedule_id is not None:
        clause, param = "id = %s", schedule_id
    else:
        return None
    async with _get_connection() as conn:
        cur = await conn.execute(
            f"SELECT {_SCHEDULE_COLUMNS} FROM schedules WHERE event_id = %s AND {clause}",
            (event_id, param),
        )
        row = await cur.fetchone()
        if not row:
            return None
        schedules = await _attach_availabilities(conn, [_schedule_from_row(row)])
        return schedules[0]


async def save_schedule(
    event_id: str,
    display_name: str,
    availabilities: list[dict[str, Any]],
    schedule_id: str | None = None,
    user_id: str | None = None,
    email: str | None = None,
) -> str:
    """Create a schedule, or replace an existing one's availability wholesale.

    Returns the schedule id.
    """
    now = datetime.now(UTC)
    rows = [(a["date"], a["start_time"], a["end_time"]) for a in availabilities]
    async with _get_connection() as conn:
        async with conn.transaction():
            if schedule_id is None:
                schedule_id = _generate_id(16)
                await conn.execute(
                    f"""INSERT INTO schedules ({_SCHEDULE_COLUMNS})
                       VALUES (%s, %s, %s, %s, %s, %s, %s)""",
                    (schedule_id, event_id, user_id, display_name, email, now, now),
                )
            else:
                await conn.execute(
                    """UPDATE schedules SET display_name = %s, email = COALESCE(%s, email), updated_at = %s
                       WHERE id = %s""",
                    (display_name, email, now, schedule_id),
                )
                await conn.execute("DELETE FROM availabilities WHERE schedule_id = %s", (schedule_id,))
            if rows:
                async with conn.cursor() as cur:
                    await cur.executemany(
                        """INSERT INTO availabilities (schedule_id, date, start_time, end_time, created_at)
                           VALUES (%s, %s, %s, %s, %s)""",
                        [(schedule_id, day, start, end, now) for day, start, end in rows],
                    )
    logger.info("Saved schedule %s for event %s with %d availabilities", schedule_id, event_id, len(rows))
    return schedule_id


async def delete_schedule(event_id: str, schedule_id: str) -> bool:
    async with _get_connection() as conn:
        cur = await conn.execute(
            "DELETE FROM schedules WHERE event_id = %s AND id = %s",
            (event_id, schedule_id),
        )
        return cur.rowcount > 0
