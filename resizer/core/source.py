"""
Fetch original images from the remote source store and decode them with Pillow.
"""

import logging
from enum import Enum
from io import BytesIO
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, FetchError
from .identifiers import SourceLocation

logger = logging.getLogger(__name__)


class SourceFormat(str, Enum):
    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> "SourceFormat":
        media_type = (content_type or "").split(";")[0].strip().lower()
        return _CONTENT_TYPES.get(media_type, cls.UNSUPPORTED)


_CONTENT_TYPES = {
    "image/jpeg": SourceFormat.JPEG,
    "image/jpg": SourceFormat.JPEG,
    "image/png": SourceFormat.PNG,
    "image/webp": SourceFormat.WEBP,
}


def decode_image(content: bytes, source_format: SourceFormat) -> Image.Image:
    """Decode `content` as `source_format` and return an RGB or RGBA image."""
    if source_format is SourceFormat.UNSUPPORTED:
        raise DecodeError("unsupported image format")
    try:
        im = Image.open(BytesIO(content), formats=[source_format.value])
        im.load()
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"image too large to decode: {exc}") from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"could not decode {source_format.value} image: {exc}") from exc

    if im.mode in ("RGB", "RGBA"):
        return im
    has_alpha = "A" in im.getbands() or "transparency" in im.info
    return im.convert("RGBA" if has_alpha else "RGB")


class SourceFetcher:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch_bytes(self, location: SourceLocation) -> tuple[bytes, SourceFormat]:
        """Download the source and return its bytes with the dispatched format."""
        logger.info("[source] downloading %s", location.url)
        try:
            resp = await self.client.get(location.url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise FetchError(f"error downloading {location.url}: {exc}") from exc

        if resp.status_code != 200:
            raise FetchError(
                f"image not found at {location.url}, status code: {resp.status_code}",
                status_code=resp.status_code,
            )

        content_type = resp.headers.get("content-type")
        source_format = SourceFormat.from_content_type(content_type)
        if source_format is SourceFormat.UNSUPPORTED:
            raise DecodeError(f"unsupported image format: {content_type}")
        return resp.content, source_format

    async def fetch(self, location: SourceLocation) -> Image.Image:
        content, source_format = await self.fetch_bytes(location)
        return decode_image(content, source_format)
