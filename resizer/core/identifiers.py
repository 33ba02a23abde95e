"""Helpers for turning request identifiers into source-store URLs and back."""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

UPLOADS = "uploads"
ADS = "ads"

_URLSAFE_B64_RE = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")


@dataclass(frozen=True)
class SourceLocation:
    namespace: str
    relative_path: str
    url: str


def decode_identifier(identifier: str) -> Optional[str]:
    """Return the decoded path for a URL-safe base64 identifier, or None if it is not one."""
    if not _URLSAFE_B64_RE.match(identifier):
        return None
    stripped = identifier.rstrip("=")
    if len(stripped) % 4 == 1:
        return None
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def resolve_source(
    identifier: str,
    base_url: str,
    uploads_prefix: str = f"{UPLOADS}/",
    ads_prefix: str = f"{ADS}/",
) -> SourceLocation:
    """
    Resolve an opaque identifier to the URL of its original image.

    Encoded identifiers live under the uploads namespace; anything that does not
    decode is taken verbatim as a path under the ads namespace.
    """
    decoded = decode_identifier(identifier)
    if decoded is not None:
        namespace, relative_path = UPLOADS, uploads_prefix + decoded
    else:
        namespace, relative_path = ADS, ads_prefix + identifier
    return SourceLocation(
        namespace=namespace,
        relative_path=relative_path,
        url=base_url + relative_path,
    )


def encode_identifier(path: str) -> str:
    """Encode an uploads-relative path the way clients send it."""
    return base64.urlsafe_b64encode(path.encode("utf-8")).decode("ascii")


def build_resize_url(identifier: str, width: int, height: int, quality: int = 80, crop: bool = False) -> str:
    query = urlencode({
        "filename": identifier,
        "width": width,
        "height": height,
        "quality": quality,
        "crop": "true" if crop else "false",
    })
    return f"/resize?{query}"
