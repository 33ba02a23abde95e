import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.error_handlers import resizer_error_handler
from .api.logs import router as logs_router
from .api.resize import router as resize_router
from .api.routes_health import router as health_router
from .core.artifact_cache import ArtifactCache
from .core.config import Settings, settings as default_settings
from .core.errors import ResizerError
from .core.log_buffer import install_log_buffer
from .core.pipeline import ResizeService
from .core.source import SourceFetcher

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application; `transport` replaces the network for the source store."""
    settings = settings or default_settings
    install_log_buffer()

    client = httpx.AsyncClient(transport=transport, timeout=settings.FETCH_TIMEOUT_SECONDS)
    service = ResizeService(
        settings=settings,
        cache=ArtifactCache(settings.CACHE_DIR),
        fetcher=SourceFetcher(client),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[resize] serving from %s, cache at %s", settings.SOURCE_BASE_URL, settings.CACHE_DIR)
        yield
        await client.aclose()

    app = FastAPI(title="Resizer", description="On-demand image resize proxy", lifespan=lifespan)
    app.state.settings = settings
    app.state.resize_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ResizerError, resizer_error_handler)

    app.include_router(health_router)
    app.include_router(resize_router)
    app.include_router(logs_router)
    return app


app = create_app()


def run() -> None:
    logging.basicConfig(
        level=default_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
