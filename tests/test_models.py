"""Tests for core data models."""

from __future__ import annotations

import pytest

from docserve.errors import InvalidArgumentError
from docserve.models import (
    DocumentCategory,
    DocumentContent,
    DocumentMetadata,
    SearchResult,
    document_id,
)


def _metadata(**overrides) -> DocumentMetadata:
    values = dict(
        id="adrs/adr-001",
        title="Use MCP",
        category=DocumentCategory.ADRS,
        source_path="docs/ADRs/adr-001.md",
        description="Short text",
        tags=["architecture"],
    )
    values.update(overrides)
    return DocumentMetadata(**values)


class TestDocumentCategory:
    """Tests for category parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("ADRs", DocumentCategory.ADRS),
            ("adrs", DocumentCategory.ADRS),
            ("  styleguides ", DocumentCategory.STYLE_GUIDES),
            ("STRUCTURES", DocumentCategory.STRUCTURES),
            (DocumentCategory.RECOMMENDATIONS, DocumentCategory.RECOMMENDATIONS),
        ],
    )
    def test_parse_is_case_insensitive(self, raw, expected) -> None:
        """Category names parse in any case."""
        assert DocumentCategory.parse(raw) is expected

    def test_parse_unknown_lists_valid_names(self) -> None:
        """Error message names every valid category."""
        with pytest.raises(InvalidArgumentError) as excinfo:
            DocumentCategory.parse("Guides")
        message = str(excinfo.value)
        assert "Guides" in message
        for name in ("ADRs", "Recommendations", "StyleGuides", "Structures"):
            assert name in message

    def test_parse_empty_rejected(self) -> None:
        """Empty category names are rejected."""
        with pytest.raises(InvalidArgumentError):
            DocumentCategory.parse("")

    def test_names_in_declaration_order(self) -> None:
        """Names keep declaration order."""
        assert DocumentCategory.names() == ["ADRs", "Recommendations", "StyleGuides", "Structures"]


class TestDocumentId:
    """Tests for document id derivation."""

    def test_id_is_lowercase_category_and_stem(self) -> None:
        """Ids are lowercase category and stem."""
        assert document_id(DocumentCategory.ADRS, "docs/ADRs/ADR-001-Use-MCP.md") == (
            "adrs/adr-001-use-mcp"
        )

    def test_nested_folder_is_dropped(self) -> None:
        """Only the file stem contributes, not subfolders."""
        assert document_id(DocumentCategory.STYLE_GUIDES, "StyleGuides/csharp/naming.md") == (
            "styleguides/naming"
        )


class TestSerialization:
    """Tests for to_dict payloads."""

    def test_metadata_to_dict(self) -> None:
        """Metadata serializes with camelCase keys."""
        payload = _metadata().to_dict()
        assert payload == {
            "id": "adrs/adr-001",
            "title": "Use MCP",
            "category": "ADRs",
            "source_path": "docs/ADRs/adr-001.md",
            "description": "Short text",
            "tags": ["architecture"],
            "language": None,
        }

    def test_metadata_tags_copied(self) -> None:
        """Serialized tags are a copy."""
        metadata = _metadata()
        payload = metadata.to_dict()
        payload["tags"].append("extra")
        assert metadata.tags == ["architecture"]

    def test_content_to_dict_adds_content(self) -> None:
        """Content adds the markdown text."""
        payload = DocumentContent(metadata=_metadata(), content="# Use MCP").to_dict()
        assert payload["id"] == "adrs/adr-001"
        assert payload["content"] == "# Use MCP"

    def test_search_result_to_dict(self) -> None:
        """Search results nest the document."""
        result = SearchResult(
            document=_metadata(), relevance_score=45, match_count=2, excerpts=["Use MCP"]
        )
        payload = result.to_dict()
        assert payload["relevance_score"] == 45
        assert payload["match_count"] == 2
        assert payload["excerpts"] == ["Use MCP"]
        assert payload["document"]["title"] == "Use MCP"
