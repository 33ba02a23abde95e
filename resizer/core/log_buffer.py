from __future__ import annotations

import logging
import re
import threading
import traceback
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional, Tuple

_BUFFER_MAX = 2000
_TAG_RE = re.compile(r"^\[([a-z_]+)\]")
_ERROR_LEVELS = {"ERROR", "WARNING", "CRITICAL"}

RESIZER_LOGGERS = (
    "resizer.core.pipeline",
    "resizer.core.source",
    "resizer.core.artifact_cache",
    "resizer.api.resize",
    "resizer.main",
)

_buffer: Deque[Dict[str, object]] = deque(maxlen=_BUFFER_MAX)
_lock = threading.Lock()
_next_id = 1
_handler: Optional[_LogBufferHandler] = None


class _LogBufferHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        if record.name == "uvicorn.access":
            return
        global _next_id
        try:
            message = record.getMessage()
            if record.exc_info:
                message = f"{message}\n{''.join(traceback.format_exception(*record.exc_info))}".rstrip()

            ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
            match = _TAG_RE.match(message)
            with _lock:
                _buffer.append({
                    "id": _next_id,
                    "ts": ts,
                    "level": record.levelname,
                    "logger": record.name,
                    "tag": match.group(1) if match else None,
                    "message": message,
                })
                _next_id += 1
        except Exception:
            self.handleError(record)


def install_log_buffer(level: int = logging.INFO) -> logging.Handler:
    """Attach the buffer handler once; later calls return the installed handler."""
    global _handler
    if _handler is not None:
        return _handler
    handler = _LogBufferHandler()
    handler.setLevel(level)
    # uvicorn loggers do not propagate to root
    for name in ("", "uvicorn", "uvicorn.error"):
        logger = logging.getLogger(name)
        if handler not in logger.handlers:
            logger.addHandler(handler)
    for name in RESIZER_LOGGERS:
        logger = logging.getLogger(name)
        if logger.level == logging.NOTSET or logger.level > level:
            logger.setLevel(level)
    _handler = handler
    return handler


def get_log_entries(
    since_id: int | None,
    limit: int,
    errors_only: bool = False,
) -> Tuple[List[Dict[str, object]], int | None]:
    with _lock:
        items = list(_buffer)
        newest = int(_buffer[-1]["id"]) if _buffer else None
    if since_id is not None:
        items = [entry for entry in items if int(entry["id"]) > since_id]
    if errors_only:
        items = [entry for entry in items if entry["level"] in _ERROR_LEVELS]
    if limit and len(items) > limit:
        items = items[-limit:]
    last_id = int(items[-1]["id"]) if items else newest
    return items, last_id


def clear_log_entries() -> None:
    global _next_id
    with _lock:
        _buffer.clear()
        _next_id = 1
