"""
Error taxonomy for the resize pipeline.

Every error knows the HTTP status it maps to; the API layer turns them into
JSON responses through a single exception handler.
"""

from typing import Optional


class ResizerError(Exception):
    """Base class for all pipeline failures."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ResizerError):
    """A request parameter is malformed or out of range."""

    http_status = 400

    def __init__(self, parameter: str, message: str):
        super().__init__(message)
        self.parameter = parameter


class FetchError(ResizerError):
    """The source store could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ResizerError):
    """Unsupported content type or corrupt source bytes."""


class EncodeError(ResizerError):
    """The output codec failed or an unsupported output format was requested."""


class CacheReadError(ResizerError):
    """A stored artifact exists but could not be read."""


class CacheWriteError(ResizerError):
    """A freshly produced artifact could not be persisted."""
