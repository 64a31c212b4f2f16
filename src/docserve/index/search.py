"""Query engine over the document index."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from docserve.config import DocumentSourceConfig
from docserve.errors import InvalidArgumentError, NotFoundError, SourceUnavailableError
from docserve.index.indexer import DocumentIndex, IndexStats
from docserve.ingestion.sources import create_source
from docserve.models import DocumentCategory, DocumentContent, DocumentMetadata, SearchResult
from docserve.utils.text import count_occurrences, extract_keywords, make_excerpt

LOGGER = logging.getLogger(__name__)

TITLE_WEIGHT = 30
DESCRIPTION_WEIGHT = 20
TAG_WEIGHT = 15
CONTENT_WEIGHT = 1
MAX_RELEVANCE = 100
MAX_EXCERPTS = 3

SAME_CATEGORY_BONUS = 20
SHARED_TAG_BONUS = 15
KEYWORD_SIMILARITY_WEIGHT = 100

MIN_RELATED_RESULTS = 1
MAX_RELATED_RESULTS = 20
DEFAULT_RELATED_RESULTS = 5


def parse_tags(raw: str | Iterable[str]) -> List[str]:
    """Split a comma-separated tag string (or clean a list of tags)."""
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    return [part.strip() for part in parts if part and part.strip()]


def _normalize_path(value: str) -> str:
    return value.strip().replace("\\", "/").strip("/").lower()


class QueryEngine:
    """Read-only queries over a :class:`DocumentIndex`."""

    def __init__(self, index: DocumentIndex) -> None:
        self.index = index

    def list_all(self) -> List[DocumentMetadata]:
        return self.index.documents()

    def by_category(self, category: str | DocumentCategory) -> List[DocumentMetadata]:
        parsed = DocumentCategory.parse(category)
        return [doc for doc in self.index.documents() if doc.category is parsed]

    def by_id(self, doc_id: str) -> Optional[DocumentMetadata]:
        return self.index.get(doc_id)

    def resolve(self, id_or_path: str) -> Optional[DocumentMetadata]:
        """Find a document by id, docs-relative path or full source path."""
        if not id_or_path or not id_or_path.strip():
            raise InvalidArgumentError("Document id or path must not be empty")
        normalized = _normalize_path(id_or_path)

        found = self.index.get(normalized)
        if found is not None:
            return found
        if normalized.endswith(".md"):
            found = self.index.get(normalized[:-3])
            if found is not None:
                return found

        for doc in self.index.documents():
            source_path = _normalize_path(doc.source_path)
            if source_path == normalized or source_path.endswith("/" + normalized):
                return doc
        LOGGER.debug("No document matches %s", id_or_path)
        return None

    def by_tags(self, tags: str | Iterable[str]) -> List[DocumentMetadata]:
        wanted = {tag.lower() for tag in parse_tags(tags)}
        if not wanted:
            raise InvalidArgumentError("At least one tag is required")
        return [
            doc
            for doc in self.index.documents()
            if any(tag.lower() in wanted for tag in doc.tags)
        ]

    def by_language(self, language: str) -> List[DocumentMetadata]:
        if not language or not language.strip():
            raise InvalidArgumentError("Language must not be empty")
        wanted = language.strip().lower()
        return [
            doc
            for doc in self.index.documents()
            if doc.language is not None and doc.language.lower() == wanted
        ]

    def all_tags(self) -> Dict[str, int]:
        """Every distinct tag with the number of documents carrying it."""
        spelling: Dict[str, str] = {}
        counts: Dict[str, int] = {}
        for doc in self.index.documents():
            for tag in {tag.lower(): tag for tag in doc.tags}.values():
                key = spelling.setdefault(tag.lower(), tag)
                counts[key] = counts.get(key, 0) + 1
        return counts

    def fetch_content(self, id_or_path: str) -> Optional[DocumentContent]:
        metadata = self.resolve(id_or_path)
        if metadata is None:
            return None
        try:
            text = self.index.fetch_text(metadata)
        except (NotFoundError, SourceUnavailableError) as exc:
            LOGGER.error("Failed to fetch documentation %s: %s", metadata.source_path, exc)
            return None
        return DocumentContent(metadata=metadata, content=text)

    def search(self, term: str) -> List[SearchResult]:
        if not (term or "").strip():
            raise InvalidArgumentError("Search term must not be empty")

        results: List[SearchResult] = []
        for doc in self.index.documents():
            text = self._text_or_empty(doc, purpose="search")
            result = self._score(doc, text, term)
            if result.match_count > 0:
                results.append(result)

        results.sort(key=lambda result: result.relevance_score, reverse=True)
        return results

    def related(
        self, doc_id: str, max_results: int = DEFAULT_RELATED_RESULTS
    ) -> List[DocumentMetadata]:
        if not MIN_RELATED_RESULTS <= max_results <= MAX_RELATED_RESULTS:
            raise InvalidArgumentError(
                f"maxResults must be between {MIN_RELATED_RESULTS} and {MAX_RELATED_RESULTS}"
            )
        source_doc = self.index.get(doc_id)
        if source_doc is None:
            LOGGER.debug("Source documentation %s not found", doc_id)
            return []

        source_keywords = extract_keywords(self._text_or_empty(source_doc, purpose="related"))
        scored: List[Tuple[DocumentMetadata, int]] = []
        for doc in self.index.documents():
            if doc.id == source_doc.id:
                continue
            keywords = extract_keywords(self._text_or_empty(doc, purpose="related"))
            score = similarity_score(source_doc, source_keywords, doc, keywords)
            if score > 0:
                scored.append((doc, score))

        scored.sort(key=lambda item: item[1], reverse=True)
        return [doc for doc, _ in scored[:max_results]]

    def refresh(self) -> IndexStats:
        return self.index.refresh()

    def _text_or_empty(self, doc: DocumentMetadata, *, purpose: str) -> str:
        try:
            return self.index.fetch_text(doc)
        except (NotFoundError, SourceUnavailableError) as exc:
            LOGGER.warning("Skipping content of %s during %s: %s", doc.source_path, purpose, exc)
            return ""

    @staticmethod
    def _score(doc: DocumentMetadata, text: str, term: str) -> SearchResult:
        title_matches = count_occurrences(doc.title, term)
        description_matches = count_occurrences(doc.description or "", term)
        lowered = term.lower()
        tag_matches = sum(1 for tag in doc.tags if lowered in tag.lower())

        content_matches = 0
        excerpts: List[str] = []
        for line in text.split("\n"):
            hits = count_occurrences(line, term)
            if not hits:
                continue
            content_matches += hits
            if len(excerpts) < MAX_EXCERPTS:
                excerpts.append(make_excerpt(line, term))

        relevance = min(
            MAX_RELEVANCE,
            title_matches * TITLE_WEIGHT
            + description_matches * DESCRIPTION_WEIGHT
            + tag_matches * TAG_WEIGHT
            + content_matches * CONTENT_WEIGHT,
        )
        return SearchResult(
            document=doc,
            relevance_score=relevance,
            match_count=title_matches + description_matches + tag_matches + content_matches,
            excerpts=excerpts,
        )


def similarity_score(
    source: DocumentMetadata,
    source_keywords: Set[str],
    target: DocumentMetadata,
    target_keywords: Set[str],
) -> int:
    """Category bonus + shared-tag bonus + keyword Jaccard similarity (0-100)."""
    score = SAME_CATEGORY_BONUS if source.category is target.category else 0

    shared_tags = {tag.lower() for tag in source.tags} & {tag.lower() for tag in target.tags}
    score += SHARED_TAG_BONUS * len(shared_tags)

    union = source_keywords | target_keywords
    if union:
        shared = source_keywords & target_keywords
        score += round(KEYWORD_SIMILARITY_WEIGHT * len(shared) / len(union))
    return score


def build_engine(config: DocumentSourceConfig) -> QueryEngine:
    """Wire a content source, index and query engine from ``config``."""
    source = create_source(config)
    LOGGER.debug("Using %r for %s", source, config.describe())
    return QueryEngine(DocumentIndex(source, config.categories))
