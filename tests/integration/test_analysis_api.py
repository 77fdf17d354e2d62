"""
Integration tests for analysis, history and favorites endpoints.

The provider is replaced by MockClaudeService through dependency override.
"""
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from safecheck.services.ai_service import (
    ProviderError,
    RateLimitError,
    ServiceUnavailableError,
)


pytestmark = pytest.mark.integration

IMAGE_URL = "https://example.com/label.jpg"


def png_bytes(size=(1600, 900)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color="white").save(buffer, format="PNG")
    return buffer.getvalue()


class TestAnalyzeEndpoint:
    def test_analyze_url(self, client: TestClient, mock_claude_service):
        response = client.post("/analysis", data={"image_url": IMAGE_URL})

        assert response.status_code == 201
        body = response.json()
        assert body["imageReference"] == IMAGE_URL
        assert body["report"]["productName"] == "Crunchy Peanut Bar"
        assert body["report"]["harmfulIngredients"] == ["BHA: preservative"]
        assert set(body["report"]["ageSpecificWarnings"]) == {
            "babies",
            "children",
            "adults",
            "elderly",
        }

    def test_analyze_upload(self, client: TestClient, mock_claude_service, image_dir):
        response = client.post(
            "/analysis", files={"image": ("label.png", png_bytes(), "image/png")}
        )

        assert response.status_code == 201
        sent = mock_claude_service.calls["analyze_product_image"][0]["kwargs"]
        assert sent["image_reference"].startswith("data:image/jpeg;base64,")
        assert response.json()["imageReference"].startswith(str(image_dir))

    def test_upload_wrong_type(self, client: TestClient):
        response = client.post(
            "/analysis", files={"image": ("label.txt", b"hello", "text/plain")}
        )

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_no_image(self, client: TestClient, mock_claude_service):
        response = client.post("/analysis", data={})

        assert response.status_code == 400
        assert "image" in response.json()["detail"]
        assert mock_claude_service.calls == {}

    def test_non_http_url(self, client: TestClient):
        response = client.post("/analysis", data={"image_url": "file:///etc/passwd"})

        assert response.status_code == 400

    def test_missing_api_key(self, client: TestClient, mock_claude_service):
        mock_claude_service.is_configured = False

        response = client.post("/analysis", data={"image_url": IMAGE_URL})

        assert response.status_code == 400
        assert "API key" in response.json()["detail"]

    @pytest.mark.parametrize(
        "text",
        [
            "Sorry, I cannot help.",
            '{"productName": "X", "recommendations": '
            + "[" * 100000
            + "]" * 100000
            + "}",
        ],
        ids=["prose", "deep-nesting"],
    )
    def test_unparseable_response(
        self, client: TestClient, mock_claude_service, text
    ):
        mock_claude_service.set_response_text(text)

        response = client.post("/analysis", data={"image_url": IMAGE_URL})

        assert response.status_code == 502
        assert response.json()["detail"] == "Analysis failed - could not parse result"
        assert client.get("/history").json() == []

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (RateLimitError("Too many requests"), 429),
            (ServiceUnavailableError("AI service error"), 503),
            (ProviderError("image too large"), 502),
        ],
    )
    def test_provider_errors(self, client: TestClient, mock_claude_service, error, status_code):
        mock_claude_service.set_error(error)

        response = client.post("/analysis", data={"image_url": IMAGE_URL})

        assert response.status_code == status_code
        assert response.json()["detail"] == str(error)


class TestHistoryEndpoints:
    def test_history_newest_first(self, client: TestClient, mock_claude_service):
        first = client.post("/analysis", data={"image_url": IMAGE_URL}).json()
        mock_claude_service.set_response_text('{"productName": "Second"}')
        second = client.post("/analysis", data={"image_url": IMAGE_URL}).json()

        history = client.get("/history").json()

        assert [e["id"] for e in history] == [second["id"], first["id"]]
        assert history[0]["report"]["safetyRating"] is None

    def test_get_entry(self, client: TestClient):
        created = client.post("/analysis", data={"image_url": IMAGE_URL}).json()

        response = client.get(f"/history/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing_entry(self, client: TestClient):
        assert client.get("/history/missing").status_code == 404


class TestFavoritesEndpoints:
    def test_toggle_favorite(self, client: TestClient):
        entry = client.post("/analysis", data={"image_url": IMAGE_URL}).json()

        added = client.post(f"/favorites/{entry['id']}/toggle").json()
        assert added == {"productName": "Crunchy Peanut Bar", "favorite": True}

        favorites = client.get("/favorites").json()
        assert len(favorites) == 1
        assert favorites[0]["safetyRating"] == 2

        removed = client.post(f"/favorites/{entry['id']}/toggle").json()
        assert removed["favorite"] is False
        assert client.get("/favorites").json() == []

    def test_toggle_missing_entry(self, client: TestClient):
        assert client.post("/favorites/missing/toggle").status_code == 404
