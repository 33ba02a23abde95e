"""
Resize request and response schemas.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ValidationError

# at most nine digits; longer values are out of range anyway
_INT_RE = re.compile(r"[+-]?[0-9]{1,9}")

# largest width or height libwebp can encode
MAX_DIMENSION = 16383


def parse_positive_int(name: str, raw: Optional[str], maximum: Optional[int] = None) -> int:
    """Parse a query value as a base-10 integer in 1..maximum, rejecting anything else."""
    if raw is None or not _INT_RE.fullmatch(raw):
        raise ValidationError(name, f"invalid {name} value")
    value = int(raw)
    if value <= 0 or (maximum is not None and value > maximum):
        raise ValidationError(name, f"invalid {name} value")
    return value


def parse_crop(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() == "true"


def check_identifier(raw: Optional[str]) -> str:
    """Reject identifiers that are empty or could step outside the cache root."""
    if not raw:
        raise ValidationError("filename", "filename is required")
    if raw.startswith("/") or "\\" in raw or "\x00" in raw:
        raise ValidationError("filename", "invalid filename value")
    if any(segment in ("", ".", "..") for segment in raw.split("/")):
        raise ValidationError("filename", "invalid filename value")
    return raw


class TransformRequest(BaseModel):
    """Validated geometry and quality for one resize."""
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    width: int = Field(..., gt=0, le=MAX_DIMENSION)
    height: int = Field(..., gt=0, le=MAX_DIMENSION)
    quality: int = Field(..., gt=0, le=100)
    crop: bool = False

    @classmethod
    def from_query(
        cls,
        filename: Optional[str],
        quality: Optional[str],
        width: Optional[str],
        height: Optional[str],
        crop: Optional[str] = None,
    ) -> "TransformRequest":
        return cls(
            identifier=check_identifier(filename),
            quality=parse_positive_int("quality", quality, maximum=100),
            width=parse_positive_int("width", width, maximum=MAX_DIMENSION),
            height=parse_positive_int("height", height, maximum=MAX_DIMENSION),
            crop=parse_crop(crop),
        )


class ResizeResult(BaseModel):
    """Encoded artifact ready to be served."""
    content: bytes
    content_type: str
    cache_key: str
    cache_hit: bool = False
