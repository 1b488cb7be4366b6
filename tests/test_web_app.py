"""Tests for the FastAPI web application."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from docquery.service import DocumentationService
from docquery.web.app import create_app

from conftest import EXPECTED_ORDER, write_corpus


@pytest.fixture
def client(service: DocumentationService) -> TestClient:
    return TestClient(create_app(service))


class TestQueryEndpoint:
    """Tests for POST /query endpoint."""

    def test_search_request(self, client: TestClient) -> None:
        """Returns a success envelope with results."""
        response = client.post("/query", json={"search": "cloudflare deployment", "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["operation"] == "search"
        assert body["data"]["results"][0]["path"] == "deployment/platforms/cloudflare"
        assert len(body["data"]["results"]) == 2

    def test_invalid_request(self, client: TestClient) -> None:
        """Returns a failure envelope for a request naming two operations."""
        response = client.post("/query", json={"search": "a", "ask": "b"})

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_missing_content(self, client: TestClient) -> None:
        """Returns suggestions for an unknown path."""
        body = client.post("/query", json={"content": "deployment/cloudflare"}).json()

        assert body["success"] is False
        assert body["suggestions"][0] == "deployment/platforms/cloudflare"


class TestSearchEndpoint:
    """Tests for POST /search endpoint."""

    def test_search_empty_query(self, client: TestClient) -> None:
        """Returns 400 for empty query."""
        response = client.post("/search", json={"query": "", "limit": 10})
        assert response.status_code == 400
        assert "Empty query" in response.json()["detail"]

    def test_search_whitespace_query(self, client: TestClient) -> None:
        """Returns 400 for whitespace-only query."""
        response = client.post("/search", json={"query": "   "})
        assert response.status_code == 400

    def test_search_results(self, client: TestClient) -> None:
        """Returns ranked results."""
        response = client.post("/search", json={"query": "cloudflare deployment"})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["path"] == "deployment/platforms/cloudflare"
        assert results[0]["relevance_score"] == pytest.approx(16.8)

    def test_search_limit_clamped(self, client: TestClient) -> None:
        """Treats a non-positive limit as one."""
        response = client.post("/search", json={"query": "deployment", "limit": 0})

        assert len(response.json()["results"]) == 1


class TestAskEndpoint:
    """Tests for POST /ask endpoint."""

    def test_ask(self, client: TestClient) -> None:
        """Returns an answer with sources and a timestamp."""
        body = client.post("/ask", json={"query": "How do I deploy to Cloudflare?"}).json()

        assert body["answer"].startswith("Here's how you can deploy to Cloudflare:")
        assert body["sources"][0]["path"] == "deployment/platforms/cloudflare"
        assert "timestamp" in body


class TestContentEndpoints:
    """Tests for the read-only GET endpoints."""

    def test_content(self, client: TestClient) -> None:
        """Returns the content of a nested path."""
        response = client.get("/content/deployment/platforms/vercel")

        assert response.status_code == 200
        assert response.json()["content"].startswith("# Vercel")

    def test_content_missing(self, client: TestClient) -> None:
        """Returns 404 with suggestions."""
        response = client.get("/content/deployment/cloudflare")

        assert response.status_code == 404
        assert response.json()["detail"]["suggestions"][0] == "deployment/platforms/cloudflare"

    def test_paths(self, client: TestClient) -> None:
        """Lists every path."""
        body = client.get("/paths").json()

        assert body == {"paths": EXPECTED_ORDER, "count": 7}

    def test_stats_and_outline(self, client: TestClient) -> None:
        """Returns the corpus summaries."""
        assert client.get("/stats").json()["total_documents"] == 7
        assert client.get("/outline").json()["total_files"] == 7

    def test_validate(self, client: TestClient) -> None:
        """Validates a path and suggests alternatives."""
        body = client.get("/validate", params={"path": "getting-started/intro"}).json()

        assert body["exists"] is False
        assert body["suggestions"][0] == "getting-started/introduction"


class TestReloadEndpoint:
    """Tests for POST /reload endpoint."""

    def test_reload_picks_up_new_files(
        self, client: TestClient, corpus_dir: Path, service: DocumentationService
    ) -> None:
        """Rebuilds the index from disk and swaps it in."""
        write_corpus(corpus_dir, {"guides/theming.md": "# Theming\n\nCustomize the palette.\n"})
        assert client.get("/content/guides/theming").status_code == 404

        response = client.post("/reload")

        assert response.status_code == 200
        assert response.json()["documents"] == 8
        assert service.path_exists("guides/theming")
        assert client.get("/content/guides/theming").status_code == 200
