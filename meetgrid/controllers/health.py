from fastapi import APIRouter
from typing import Any, Dict

from meetgrid import db, state
from meetgrid.db.schema import get_schema_info

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, Any]:
    redis_status = "disconnected"
    if state.redis_client:
        try:
            await state.redis_client.ping()
            redis_status = "healthy"
        except Exception:
            redis_status = "unhealthy"

    database: Dict[str, Any] = {"status": "disabled"}
    if state.db_enabled:
        database = db.get_pool_stats()
        try:
            database["schema_version"] = (await get_schema_info())["current_version"]
        except Exception:
            database["status"] = "unhealthy"

    return {"status": "ok", "redis": redis_status, "database": database}
