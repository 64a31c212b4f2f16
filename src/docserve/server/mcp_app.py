"""MCP stdio server registering the documentation tools."""

import asyncio
import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from docserve.index.search import (
    DEFAULT_RELATED_RESULTS,
    MAX_RELATED_RESULTS,
    MIN_RELATED_RESULTS,
    QueryEngine,
)
from docserve.server import tools

LOGGER = logging.getLogger(__name__)

SERVER_NAME = "docserve"
INSTRUCTIONS = (
    "Code guidelines documentation: architecture decision records, recommendations, "
    "style guides and project structures. Use SearchDocuments to find documents, "
    "then GetDocumentByIdOrPath to read one."
)


def create_server(engine: QueryEngine) -> FastMCP:
    """Build a FastMCP server whose tools query ``engine``."""
    mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)

    @mcp.tool(
        name="GetAllDocuments",
        description=(
            "Gets a list of all available code guidelines documentation with metadata "
            "including id, title, category, description and tags."
        ),
    )
    async def get_all_documents() -> str:
        return await asyncio.to_thread(tools.get_all_documents, engine)

    @mcp.tool(
        name="GetDocumentByIdOrPath",
        description=(
            "Gets the full markdown content of a document by its ID ('category/filename', "
            "e.g. 'adrs/adr-001-use-mcp-server') or by its path (e.g. 'ADRs/adr-001.md')."
        ),
    )
    async def get_document_by_id_or_path(
        id_or_path: Annotated[
            str, Field(description="Document ID in format 'category/filename' or a file path")
        ],
    ) -> str:
        return await asyncio.to_thread(tools.get_document_by_id_or_path, engine, id_or_path)

    @mcp.tool(
        name="GetDocumentsByCategory",
        description=(
            "Gets all documentation for a specific category. "
            f"Valid categories are: {tools.CATEGORY_HELP}."
        ),
    )
    async def get_documents_by_category(
        category: Annotated[str, Field(description=f"One of: {tools.CATEGORY_HELP}")],
    ) -> str:
        return await asyncio.to_thread(tools.get_documents_by_category, engine, category)

    @mcp.tool(
        name="GetDocumentsByTags",
        description="Gets documentation carrying any of the given tags (case-insensitive).",
    )
    async def get_documents_by_tags(
        tags: Annotated[str, Field(description="Comma-separated tags, e.g. 'architecture,testing'")],
    ) -> str:
        return await asyncio.to_thread(tools.get_documents_by_tags, engine, tags)

    @mcp.tool(
        name="SearchDocuments",
        description=(
            "Searches titles, descriptions, tags and content. Results are ordered by "
            "relevance score (0-100) and include up to three matching excerpts."
        ),
    )
    async def search_documents(
        term: Annotated[str, Field(description="Text to look for")],
    ) -> str:
        return await asyncio.to_thread(tools.search_documents, engine, term)

    @mcp.tool(
        name="GetRelatedDocuments",
        description=(
            "Finds documents related to the given document by category, shared tags "
            "and keyword overlap."
        ),
    )
    async def get_related_documents(
        id: Annotated[str, Field(description="Document ID in format 'category/filename'")],
        maxResults: Annotated[
            int,
            Field(
                description=(
                    f"Maximum number of related documents "
                    f"({MIN_RELATED_RESULTS}-{MAX_RELATED_RESULTS})"
                )
            ),
        ] = DEFAULT_RELATED_RESULTS,
    ) -> str:
        return await asyncio.to_thread(tools.get_related_documents, engine, id, maxResults)

    @mcp.tool(
        name="GetDocumentsByLanguage",
        description="Gets documentation that applies to a programming language, e.g. 'C#'.",
    )
    async def get_documents_by_language(
        language: Annotated[str, Field(description="Programming language name")],
    ) -> str:
        return await asyncio.to_thread(tools.get_documents_by_language, engine, language)

    @mcp.tool(
        name="GetAllTags",
        description="Lists every tag used in the documentation with its document count.",
    )
    async def get_all_tags() -> str:
        return await asyncio.to_thread(tools.get_all_tags, engine)

    @mcp.tool(
        name="RefreshDocuments",
        description="Rescans the documentation source and rebuilds the in-memory index.",
    )
    async def refresh_documents() -> str:
        return await asyncio.to_thread(tools.refresh_documents, engine)

    LOGGER.debug("Registered documentation tools on %s", SERVER_NAME)
    return mcp


def run_stdio(engine: QueryEngine) -> None:
    create_server(engine).run(transport="stdio")
