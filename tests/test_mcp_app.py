"""Tests for the MCP server wiring."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

from docserve.index.search import QueryEngine
from docserve.server.mcp_app import create_server, run_stdio

EXPECTED_TOOLS = {
    "GetAllDocuments",
    "GetDocumentByIdOrPath",
    "GetDocumentsByCategory",
    "GetDocumentsByTags",
    "SearchDocuments",
    "GetRelatedDocuments",
    "GetDocumentsByLanguage",
    "GetAllTags",
    "RefreshDocuments",
}


def _text(result) -> str:
    """First text block of a call_tool result across mcp releases."""
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


class TestCreateServer:
    """Tests for tool registration."""

    def test_registers_all_tools(self, engine: QueryEngine) -> None:
        """All tools are registered."""
        server = create_server(engine)
        listed = asyncio.run(server.list_tools())
        assert {tool.name for tool in listed} == EXPECTED_TOOLS

    def test_tools_have_descriptions(self, engine: QueryEngine) -> None:
        """Every tool carries a description."""
        listed = asyncio.run(create_server(engine).list_tools())
        assert all(tool.description for tool in listed)

    def test_related_parameters(self, engine: QueryEngine) -> None:
        """Related tool exposes maxResults."""
        listed = asyncio.run(create_server(engine).list_tools())
        related = next(tool for tool in listed if tool.name == "GetRelatedDocuments")
        properties = related.inputSchema["properties"]
        assert set(properties) == {"id", "maxResults"}
        assert related.inputSchema["required"] == ["id"]
        assert properties["maxResults"]["default"] == 5

    def test_index_not_scanned_at_startup(self, engine: QueryEngine) -> None:
        """Building the server does not scan."""
        create_server(engine)
        assert not engine.index.is_ready


class TestToolCalls:
    """Tests for invoking tools through the server."""

    def test_call_get_document(self, engine: QueryEngine) -> None:
        """Calling get_document returns the document JSON."""
        server = create_server(engine)
        result = asyncio.run(
            server.call_tool("GetDocumentByIdOrPath", {"id_or_path": "adrs/adr-002-use-mcp"})
        )
        assert json.loads(_text(result))["title"] == "Use MCP Server"

    def test_call_related_with_max_results(self, engine: QueryEngine) -> None:
        """maxResults reaches the engine."""
        server = create_server(engine)
        result = asyncio.run(
            server.call_tool(
                "GetRelatedDocuments", {"id": "adrs/adr-001-use-aspire", "maxResults": 1}
            )
        )
        assert [doc["id"] for doc in json.loads(_text(result))] == ["adrs/adr-002-use-mcp"]

    def test_call_search_error_is_payload(self, engine: QueryEngine) -> None:
        """Errors come back as an error payload."""
        server = create_server(engine)
        result = asyncio.run(server.call_tool("SearchDocuments", {"term": " "}))
        assert "error" in json.loads(_text(result))


class TestRunStdio:
    """Tests for the stdio entry point."""

    def test_runs_stdio_transport(self, engine: QueryEngine) -> None:
        """run_stdio uses the stdio transport."""
        with patch("docserve.server.mcp_app.FastMCP.run") as mock_run:
            run_stdio(engine)
        mock_run.assert_called_once_with(transport="stdio")
