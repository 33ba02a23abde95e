"""
Serialize transformed images to the output codec.
"""

from enum import Enum
from io import BytesIO

from PIL import Image

from .errors import EncodeError


class OutputFormat(str, Enum):
    WEBP = "webp"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return self.value


def encode_image(
    im: Image.Image,
    quality: int,
    fmt: OutputFormat = OutputFormat.WEBP,
    method: int = 4,
) -> bytes:
    """Encode `im` as `fmt`. Quality bounds are left to the codec."""
    if fmt is not OutputFormat.WEBP:
        raise EncodeError(f"unsupported output format: {fmt}")
    buffer = BytesIO()
    try:
        im.save(buffer, format="WEBP", quality=quality, method=method)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"could not encode image: {exc}") from exc
    return buffer.getvalue()
