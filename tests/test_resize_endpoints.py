"""
End-to-end tests for GET /resize against a fake source store.
"""

from io import BytesIO

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import BASE_URL, image_bytes
from resizer.core.config import Settings
from resizer.main import create_app


def _open(response) -> Image.Image:
    return Image.open(BytesIO(response.content))


class TestResizeScenarios:
    """The request paths a client actually exercises"""

    def test_encoded_identifier_crop_to_exact_size(self, client, store):
        store.add("uploads/test.jpg", image_bytes((400, 400)))
        response = client.get("/resize", params={
            "filename": "dGVzdC5qcGc=", "width": 200, "height": 100, "quality": 80, "crop": "true",
        })

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/webp"
        assert response.headers["cache-control"] == "public, max-age=31536000"
        assert response.headers["content-length"] == str(len(response.content))
        assert response.headers["x-cache"] == "MISS"
        im = _open(response)
        assert im.format == "WEBP"
        assert im.size == (200, 100)
        assert store.calls == ["https://store.test/winfo/uploads/test.jpg"]

    def test_second_identical_request_is_served_from_cache(self, client, store):
        store.add("uploads/test.jpg", image_bytes((400, 400)))
        params = {"filename": "dGVzdC5qcGc=", "width": 200, "height": 100, "quality": 80, "crop": "true"}

        first = client.get("/resize", params=params)
        second = client.get("/resize", params=params)

        assert first.status_code == second.status_code == 200
        assert second.headers["x-cache"] == "HIT"
        assert second.content == first.content
        assert len(store.calls) == 1

    def test_different_quality_is_a_different_artifact(self, client, store):
        store.add("uploads/test.jpg", image_bytes((400, 400)))
        base = {"filename": "dGVzdC5qcGc=", "width": 200, "height": 100, "crop": "true"}

        client.get("/resize", params={**base, "quality": 80})
        response = client.get("/resize", params={**base, "quality": 30})

        assert response.headers["x-cache"] == "MISS"
        assert len(store.calls) == 2

    def test_literal_filename_is_fetched_from_ads(self, client, store):
        store.add("ads/banner.png", image_bytes((300, 100), fmt="PNG"), content_type="image/png")
        response = client.get("/resize", params={
            "filename": "banner.png", "width": 150, "height": 150, "quality": 70,
        })

        assert response.status_code == 200
        assert store.calls == ["https://store.test/winfo/ads/banner.png"]
        assert _open(response).size == (150, 50)

    def test_without_crop_height_follows_aspect_ratio(self, client, store):
        store.add("ads/wide.jpg", image_bytes((400, 200)))
        response = client.get("/resize", params={
            "filename": "wide.jpg", "width": 100, "height": 999, "quality": 80, "crop": "false",
        })

        assert response.status_code == 200
        assert _open(response).size == (100, 50)

    def test_webp_source_is_accepted(self, client, store):
        store.add("ads/pre.webp", image_bytes((64, 64), fmt="WEBP"), content_type="image/webp")
        response = client.get("/resize", params={
            "filename": "pre.webp", "width": 32, "height": 32, "quality": 80, "crop": "true",
        })

        assert response.status_code == 200
        assert _open(response).size == (32, 32)


class TestResizeFailures:
    """Server-side failures answer 500 and leave the cache untouched"""

    def test_missing_source_is_a_server_error(self, client, store, settings):
        response = client.get("/resize", params={
            "filename": "nothing.jpg", "width": 10, "height": 10, "quality": 80,
        })

        assert response.status_code == 500
        assert "detail" in response.json()
        assert len(store.calls) == 1
        assert not any(p.is_file() for p in settings.CACHE_DIR.rglob("*"))

    def test_failed_fetch_is_retried_on_next_request(self, client, store):
        params = {"filename": "late.jpg", "width": 10, "height": 10, "quality": 80}
        assert client.get("/resize", params=params).status_code == 500

        store.add("ads/late.jpg", image_bytes((20, 20)))
        assert client.get("/resize", params=params).status_code == 200
        assert len(store.calls) == 2

    def test_unsupported_content_type(self, client, store):
        store.add("ads/anim.gif", image_bytes((20, 20), fmt="GIF"), content_type="image/gif")
        response = client.get("/resize", params={
            "filename": "anim.gif", "width": 10, "height": 10, "quality": 80,
        })
        assert response.status_code == 500

    def test_corrupt_source_bytes(self, client, store):
        store.add("ads/broken.jpg", b"definitely not a jpeg")
        response = client.get("/resize", params={
            "filename": "broken.jpg", "width": 10, "height": 10, "quality": 80,
        })
        assert response.status_code == 500

    def test_unwritable_cache_still_serves_the_image(self, tmp_path, store):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        settings = Settings(
            _env_file=None,
            SOURCE_BASE_URL=BASE_URL,
            CACHE_DIR=blocker / "cache",
        )
        store.add("ads/photo.jpg", image_bytes((40, 40)))
        params = {"filename": "photo.jpg", "width": 20, "height": 20, "quality": 80, "crop": "true"}

        with TestClient(create_app(settings, transport=store.transport)) as client:
            first = client.get("/resize", params=params)
            second = client.get("/resize", params=params)
            stats = client.get("/stats").json()

        assert first.status_code == second.status_code == 200
        assert _open(first).size == (20, 20)
        assert second.headers["x-cache"] == "MISS"
        assert len(store.calls) == 2
        assert stats["pipeline"]["cache_write_errors"] == 2
        assert stats["pipeline"]["cache_read_errors"] == 2


class TestResizeValidation:
    """Invalid parameters are rejected with 400 before anything is fetched"""

    VALID = {"filename": "photo.jpg", "width": "100", "height": "100", "quality": "80"}

    @pytest.mark.parametrize("name,value", [
        ("quality", "0"),
        ("quality", "-5"),
        ("quality", "101"),
        ("quality", "high"),
        ("width", "0"),
        ("width", "12px"),
        ("width", "1.5"),
        ("width", "9" * 5000),
        ("width", "20000"),
        ("height", "0"),
        ("height", ""),
        ("height", "16384"),
        ("filename", ""),
        ("filename", "../secrets"),
        ("filename", "/etc/passwd"),
    ])
    def test_invalid_parameter(self, client, store, name, value):
        response = client.get("/resize", params={**self.VALID, name: value})

        assert response.status_code == 400
        assert response.json()["parameter"] == name
        assert store.calls == []

    @pytest.mark.parametrize("missing", ["width", "height", "quality", "filename"])
    def test_missing_parameter(self, client, store, missing):
        params = {k: v for k, v in self.VALID.items() if k != missing}
        response = client.get("/resize", params=params)

        assert response.status_code == 400
        assert store.calls == []


class TestServiceEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_detailed_health_reports_cache(self, client, settings):
        data = client.get("/health/detailed").json()
        assert data["status"] == "online"
        assert data["services"]["cache"]["cache_path"] == str(settings.CACHE_DIR)
        assert data["services"]["source"]["base_url"] == "https://store.test/winfo/"

    def test_stats_count_hits_and_misses(self, client, store):
        store.add("ads/photo.jpg", image_bytes((40, 40)))
        params = {"filename": "photo.jpg", "width": 20, "height": 20, "quality": 80}
        client.get("/resize", params=params)
        client.get("/resize", params=params)

        stats = client.get("/stats").json()
        assert stats["pipeline"]["requests"] == 2
        assert stats["pipeline"]["cache_hits"] == 1
        assert stats["pipeline"]["cache_misses"] == 1
        assert stats["pipeline"]["fetches"] == 1
        assert stats["cache"]["artifacts"] == 1

    def test_source_requests_use_configured_timeout(self, store, tmp_path):
        timeouts = []

        def handler(request):
            timeouts.append(request.extensions["timeout"])
            return store.handler(request)

        store.add("ads/photo.jpg", image_bytes((40, 40)))
        settings = Settings(
            _env_file=None,
            SOURCE_BASE_URL=BASE_URL,
            CACHE_DIR=tmp_path / "cache",
            FETCH_TIMEOUT_SECONDS=2.5,
        )
        with TestClient(create_app(settings, transport=httpx.MockTransport(handler))) as client:
            response = client.get("/resize", params={"filename": "photo.jpg", "width": 20, "height": 20, "quality": 80})

        assert response.status_code == 200
        assert timeouts == [{"connect": 2.5, "read": 2.5, "write": 2.5, "pool": 2.5}]

    def test_logs_capture_fetch_failures(self, client):
        client.post("/logs/clear")
        client.get("/resize", params={"filename": "gone.jpg", "width": 5, "height": 5, "quality": 5})

        data = client.get("/logs", params={"scope": "errors"}).json()
        assert any("gone.jpg" in entry["message"] for entry in data["items"])
        assert data["last_id"] is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
