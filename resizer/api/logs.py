"""
Service log endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Query

from ..core.log_buffer import clear_log_entries, get_log_entries

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("")
@router.get("/")
async def get_logs(
    since_id: int | None = Query(None, ge=0),
    limit: int = Query(200, ge=1, le=2000),
    scope: str = Query("all", pattern="^(all|errors)$"),
) -> Dict[str, Any]:
    """Get buffered log lines, newest last."""
    items, last_id = get_log_entries(since_id, limit, errors_only=scope == "errors")
    return {"items": items, "last_id": last_id}


@router.post("/clear")
async def clear_logs() -> Dict[str, Any]:
    clear_log_entries()
    return {"cleared": True}
