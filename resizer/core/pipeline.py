"""
Resize pipeline: cache lookup, then fetch, transform, encode and store on a miss.
"""

import asyncio
import logging
from typing import Optional

from ..schemas.resize import ResizeResult, TransformRequest
from .artifact_cache import ArtifactCache
from .config import Settings
from .encoder import OutputFormat, encode_image
from .errors import CacheReadError, CacheWriteError, FetchError
from .identifiers import resolve_source
from .resize_metrics import ResizeMetrics
from .single_flight import InFlightRegistry
from .source import SourceFetcher, decode_image
from .transform import transform_image

logger = logging.getLogger(__name__)


class ResizeService:
    def __init__(
        self,
        settings: Settings,
        cache: ArtifactCache,
        fetcher: SourceFetcher,
        metrics: Optional[ResizeMetrics] = None,
        output_format: OutputFormat = OutputFormat.WEBP,
    ):
        self.settings = settings
        self.cache = cache
        self.fetcher = fetcher
        self.metrics = metrics or ResizeMetrics()
        self.output_format = output_format
        self.in_flight = InFlightRegistry() if settings.SINGLE_FLIGHT else None

    async def resize(self, request: TransformRequest) -> ResizeResult:
        """Serve the artifact for `request`, computing and storing it on a cache miss."""
        self.metrics.record("requests")
        key = self.cache.key(request, self.output_format)

        cached = await self._read_cached(key)
        if cached is not None:
            self.metrics.record("cache_hits")
            logger.debug("[resize] cache hit %s", key)
            return self._result(key, cached, cache_hit=True)

        self.metrics.record("cache_misses")
        logger.info("[resize] cache miss %s", key)

        if self.in_flight is None:
            content = await self._produce(request, key)
        else:
            content, joined = await self.in_flight.run(key, lambda: self._produce(request, key))
            if joined:
                self.metrics.record("single_flight_joins")
                logger.debug("[resize] joined in-flight render %s", key)
        return self._result(key, content, cache_hit=False)

    async def _read_cached(self, key: str) -> Optional[bytes]:
        try:
            return await asyncio.to_thread(self.cache.get, key)
        except CacheReadError as exc:
            self.metrics.record("cache_read_errors")
            logger.warning("[resize] %s; recomputing", exc)
            return None

    async def _produce(self, request: TransformRequest, key: str) -> bytes:
        location = resolve_source(
            request.identifier,
            self.settings.SOURCE_BASE_URL,
            uploads_prefix=self.settings.UPLOADS_PREFIX,
            ads_prefix=self.settings.ADS_PREFIX,
        )
        self.metrics.record("fetches")
        try:
            content, source_format = await self.fetcher.fetch_bytes(location)
        except FetchError:
            self.metrics.record("fetch_errors")
            raise

        def _render() -> bytes:
            im = decode_image(content, source_format)
            resized = transform_image(im, request.width, request.height, request.crop)
            return encode_image(
                resized,
                request.quality,
                self.output_format,
                method=self.settings.WEBP_METHOD,
            )

        data = await asyncio.to_thread(_render)

        try:
            await asyncio.to_thread(self.cache.put, key, data)
        except CacheWriteError as exc:
            self.metrics.record("cache_write_errors")
            logger.warning("[resize] %s; serving uncached result", exc)
        return data

    def _result(self, key: str, content: bytes, cache_hit: bool) -> ResizeResult:
        return ResizeResult(
            content=content,
            content_type=self.output_format.content_type,
            cache_key=key,
            cache_hit=cache_hit,
        )
