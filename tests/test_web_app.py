"""Tests for the FastAPI web application."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from docserve.index.search import QueryEngine
from docserve.web.app import app, get_engine


@pytest.fixture
def client(engine: QueryEngine) -> Iterator[TestClient]:
    app.dependency_overrides[get_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestGetEngine:
    """Tests for the environment-configured engine."""

    def test_built_from_environment(
        self, docs_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The app reads its engine config from the environment."""
        monkeypatch.setenv("DOCSERVE_BASE_PATH", str(docs_dir))
        get_engine.cache_clear()
        try:
            engine = get_engine()
            assert engine is get_engine()
            assert len(engine.list_all()) == 4
        finally:
            get_engine.cache_clear()


class TestDocumentEndpoints:
    """Tests for GET /documents."""

    def test_list_documents(self, client: TestClient) -> None:
        """GET /documents lists everything."""
        response = client.get("/documents")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 4
        assert {doc["id"] for doc in data["documents"]} >= {"recommendations/testing"}

    def test_get_document_by_id(self, client: TestClient) -> None:
        """A document is fetched by id."""
        response = client.get("/documents/adrs/adr-002-use-mcp")
        assert response.status_code == 200
        assert response.json()["content"].startswith("# Use MCP Server")

    def test_get_document_by_path(self, client: TestClient) -> None:
        """A document is fetched by path."""
        response = client.get("/documents/StyleGuides/csharp-naming.md")
        assert response.status_code == 200
        assert response.json()["id"] == "styleguides/csharp-naming"

    def test_get_document_not_found(self, client: TestClient) -> None:
        """An unknown document returns 404."""
        response = client.get("/documents/adrs/ghost")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]


class TestFilterEndpoints:
    """Tests for category, tag and language endpoints."""

    def test_category(self, client: TestClient) -> None:
        """Documents are filtered by category."""
        response = client.get("/categories/adrs")
        assert response.status_code == 200
        assert len(response.json()["documents"]) == 2

    def test_invalid_category(self, client: TestClient) -> None:
        """An unknown category returns 400."""
        response = client.get("/categories/guides")
        assert response.status_code == 400
        assert "Valid categories" in response.json()["detail"]

    def test_tags(self, client: TestClient) -> None:
        """Documents are filtered by tags."""
        response = client.get("/tags", params={"tags": "mcp,naming"})
        assert response.status_code == 200
        assert len(response.json()["documents"]) == 2

    def test_tags_missing(self, client: TestClient) -> None:
        """A missing tags parameter returns 400."""
        assert client.get("/tags").status_code == 400

    def test_all_tags(self, client: TestClient) -> None:
        """Tag counts are returned."""
        response = client.get("/tags/all")
        assert response.status_code == 200
        assert response.json()["tags"]["Architecture"] == 2

    def test_language(self, client: TestClient) -> None:
        """Documents are filtered by language."""
        response = client.get("/languages/c%23")
        assert response.status_code == 200
        assert [doc["id"] for doc in response.json()["documents"]] == ["styleguides/csharp-naming"]


class TestSearchEndpoints:
    """Tests for GET /search and GET /related."""

    def test_search(self, client: TestClient) -> None:
        """Search returns scored results."""
        response = client.get("/search", params={"q": "aspire"})
        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["relevance_score"] == 69

    def test_search_empty_query(self, client: TestClient) -> None:
        """Returns 400 for empty query."""
        response = client.get("/search", params={"q": "   "})
        assert response.status_code == 400
        assert "Empty query" in response.json()["detail"]

    def test_related(self, client: TestClient) -> None:
        """Related documents are returned."""
        response = client.get("/related/adrs/adr-001-use-aspire", params={"max_results": 1})
        assert response.status_code == 200
        assert [doc["id"] for doc in response.json()["documents"]] == ["adrs/adr-002-use-mcp"]

    def test_related_bad_max_results(self, client: TestClient) -> None:
        """A bad max_results returns 400."""
        response = client.get("/related/adrs/adr-001-use-aspire", params={"max_results": 0})
        assert response.status_code == 400

    def test_refresh(self, client: TestClient) -> None:
        """Refresh returns scan stats."""
        response = client.post("/refresh")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["stats"]["loaded"] == 4
