"""Core DocServe data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from docserve.errors import InvalidArgumentError
from docserve.utils.files import file_stem


class DocumentCategory(str, Enum):
    """Top-level documentation folders recognised by the index."""

    ADRS = "ADRs"
    RECOMMENDATIONS = "Recommendations"
    STYLE_GUIDES = "StyleGuides"
    STRUCTURES = "Structures"

    @classmethod
    def names(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: "str | DocumentCategory") -> "DocumentCategory":
        """Parse a category name case-insensitively.

        Raises:
            InvalidArgumentError: if ``value`` does not name a category.
        """
        if isinstance(value, DocumentCategory):
            return value
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise InvalidArgumentError(
            f"Invalid category '{value}'. Valid categories are: {', '.join(cls.names())}"
        )


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata describing one markdown file in the index."""

    id: str
    title: str
    category: DocumentCategory
    source_path: str
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    language: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "source_path": self.source_path,
            "description": self.description,
            "tags": list(self.tags),
            "language": self.language,
        }


@dataclass(slots=True)
class DocumentContent:
    """Document metadata paired with its raw markdown text."""

    metadata: DocumentMetadata
    content: str

    def to_dict(self) -> Dict[str, Any]:
        payload = self.metadata.to_dict()
        payload["content"] = self.content
        return payload


@dataclass(slots=True)
class SearchResult:
    document: DocumentMetadata
    relevance_score: int
    match_count: int
    excerpts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document.to_dict(),
            "relevance_score": self.relevance_score,
            "match_count": self.match_count,
            "excerpts": list(self.excerpts),
        }


def document_id(category: DocumentCategory, source_path: str) -> str:
    """Build the stable id ``<category>/<file stem>`` in lower case."""
    return f"{category.value}/{file_stem(source_path)}".lower()
