"""
Image resize endpoint.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from ..core.pipeline import ResizeService
from ..schemas.resize import TransformRequest

router = APIRouter(tags=["images"])
logger = logging.getLogger(__name__)


def get_resize_service(request: Request) -> ResizeService:
    return request.app.state.resize_service


@router.get("/resize")
async def resize_image(
    filename: Optional[str] = Query(None, description="Encoded upload path or literal ads filename"),
    width: Optional[str] = Query(None, description="Target width in px"),
    height: Optional[str] = Query(None, description="Target height in px (exact only with crop)"),
    quality: Optional[str] = Query(None, description="Encoder quality, 1-100"),
    crop: Optional[str] = Query(None, description="'true' to center-crop to width x height"),
    service: ResizeService = Depends(get_resize_service),
):
    logger.debug("[resize] request filename=%s %sx%s q=%s crop=%s", filename, width, height, quality, crop)
    transform = TransformRequest.from_query(filename, quality, width, height, crop)
    result = await service.resize(transform)
    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={
            "Cache-Control": f"public, max-age={service.settings.CACHE_MAX_AGE_SECONDS}",
            "X-Cache": "HIT" if result.cache_hit else "MISS",
        },
    )


@router.get("/stats")
async def resize_stats(service: ResizeService = Depends(get_resize_service)) -> Dict[str, Any]:
    """Pipeline counters and artifact cache usage."""
    cache_stats = await asyncio.to_thread(service.cache.stats)
    return {
        "pipeline": service.metrics.snapshot(),
        "in_flight": len(service.in_flight) if service.in_flight is not None else 0,
        "cache": cache_stats,
    }
