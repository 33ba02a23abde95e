from fastapi import APIRouter, Depends, status
import asyncio
import tempfile
from datetime import datetime, timezone

from ..core.pipeline import ResizeService
from .resize import get_resize_service

router = APIRouter()


def check_cache_dir(service: ResizeService) -> dict:
    """Check that the artifact cache root can be created and written."""
    root = service.cache.root
    try:
        root.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=root, prefix=".tmp-health-"):
            pass
        return {"status": "online", "last_error": None}
    except OSError as e:
        return {"status": "offline", "last_error": str(e)}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict:
    return {"status": "ok"}


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
async def detailed_health(service: ResizeService = Depends(get_resize_service)) -> dict:
    """Detailed health check with cache status."""
    cache_status, cache_stats = await asyncio.gather(
        asyncio.to_thread(check_cache_dir, service),
        asyncio.to_thread(service.cache.stats),
    )
    system_status = "online" if cache_status["status"] == "online" else "degraded"
    return {
        "status": system_status,
        "checked_at": datetime.now(timezone.utc).isoformat(),
        "services": {
            "cache": {**cache_status, **cache_stats},
            "source": {"base_url": service.settings.SOURCE_BASE_URL},
        },
    }
