"""API error handlers for converting pipeline exceptions to HTTP responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.errors import EncodeError, ResizerError, ValidationError

logger = logging.getLogger(__name__)


async def resizer_error_handler(request: Request, exc: ResizerError):
    """
    Convert a pipeline error to a JSON response with its HTTP status.

    Validation errors echo their message; server errors are logged and answered
    with a short generic message.
    """
    if isinstance(exc, ValidationError):
        return JSONResponse(
            status_code=exc.http_status,
            content={"detail": exc.message, "parameter": exc.parameter},
        )

    logger.warning("[resize] %s failed: %s", request.url.path, exc)
    if isinstance(exc, EncodeError):
        detail = "could not encode image"
    else:
        detail = "could not process image"
    return JSONResponse(status_code=exc.http_status, content={"detail": detail})
