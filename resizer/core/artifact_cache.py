"""
Disk-backed artifact cache for encoded resize results.

One file per cache key under the configured root. Artifacts never expire and are
never evicted; a key that is on disk is served as-is.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .encoder import OutputFormat
from .errors import CacheReadError, CacheWriteError, ValidationError

logger = logging.getLogger(__name__)


class ArtifactCache:
    def __init__(self, root: Path):
        self.root = Path(root)

    @staticmethod
    def key(request, fmt: OutputFormat = OutputFormat.WEBP) -> str:
        """
        Cache key for a transform request.

        The raw identifier is kept verbatim; the fixed-shape suffix makes the key
        parse unambiguously from the right, so distinct requests never share a key.
        """
        crop = "true" if request.crop else "false"
        return (
            f"{request.identifier}_{request.width}x{request.height}"
            f"_q{request.quality}_crop{crop}.{fmt.extension}"
        )

    def path_for(self, key: str) -> Path:
        root = self.root.resolve()
        path = (root / key).resolve()
        if path == root or root not in path.parents:
            raise ValidationError("filename", f"cache key escapes cache root: {key}")
        return path

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored artifact, or None on a miss."""
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheReadError(f"could not read cached artifact {key}: {exc}") from exc

    def put(self, key: str, data: bytes) -> Path:
        """Persist `data` under `key`, replacing any previous file whole."""
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheWriteError(f"could not create cache directory: {exc}") from exc

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(dir=path.parent, prefix=".tmp-", delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise CacheWriteError(f"could not save artifact {key}: {exc}") from exc
        logger.debug("[artifact_cache] stored %s (%d bytes)", key, len(data))
        return path

    def stats(self) -> dict:
        """Artifact count and disk usage."""
        file_count = 0
        disk_size = 0
        if self.root.exists():
            for f in self.root.rglob("*"):
                if f.is_file() and not f.name.startswith(".tmp-"):
                    file_count += 1
                    disk_size += f.stat().st_size
        return {
            "artifacts": file_count,
            "disk_size_bytes": disk_size,
            "disk_size_mb": round(disk_size / (1024 * 1024), 2),
            "cache_path": str(self.root),
        }
