from meetgrid.db.core import close_pool, get_pool_stats, init_pool
from meetgrid.db.events import create_event, get_event
from meetgrid.db.schedules import (
    delete_schedule,
    fetch_schedules,
    find_schedule,
    save_schedule,
)

__all__ = [
    "close_pool",
    "create_event",
    "delete_schedule",
    "fetch_schedules",
    "find_schedule",
    "get_event",
    "get_pool_stats",
    "init_pool",
    "save_schedule",
]
