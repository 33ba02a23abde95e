"""
Shared fixtures: an in-memory source store behind httpx.MockTransport and an app
wired to it with a temporary cache directory.
"""

from io import BytesIO

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from resizer.core.config import Settings
from resizer.main import create_app

BASE_URL = "https://store.test/winfo/"


def image_bytes(size=(400, 400), fmt="JPEG", color=(200, 30, 30), mode="RGB") -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


class SourceStore:
    """Fake remote store that records every fetched URL."""

    def __init__(self):
        self.objects = {}
        self.calls = []

    def add(self, relative_path: str, content: bytes, content_type: str = "image/jpeg", status: int = 200):
        self.objects[BASE_URL + relative_path] = (status, content, content_type)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url not in self.objects:
            return httpx.Response(404, content=b"not found", headers={"content-type": "text/plain"})
        status, content, content_type = self.objects[url]
        return httpx.Response(status, content=content, headers={"content-type": content_type})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def store():
    return SourceStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        SOURCE_BASE_URL=BASE_URL,
        CACHE_DIR=tmp_path / "cache",
    )


@pytest.fixture
def client(settings, store):
    """Test client for an app whose source store is `store`."""
    app = create_app(settings, transport=store.transport)
    with TestClient(app) as test_client:
        yield test_client
