"""In-memory document index built from a content source."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from docserve.errors import NotFoundError, SourceUnavailableError
from docserve.ingestion.markdown import extract_metadata
from docserve.ingestion.sources import ContentSource
from docserve.models import DocumentCategory, DocumentMetadata, document_id
from docserve.utils.files import file_stem, iter_markdown_entries, join_path

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    loaded: int = 0
    duplicates: int = 0
    failed: int = 0
    missing_categories: List[str] = field(default_factory=list)
    processed_files: List[str] = field(default_factory=list)

    def increment(self, status: str, path: str) -> None:
        if status == "loaded":
            self.loaded += 1
        elif status == "duplicate":
            self.duplicates += 1
        else:
            self.failed += 1
        self.processed_files.append(path)

    def to_dict(self) -> dict:
        return {
            "loaded": self.loaded,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "missing_categories": list(self.missing_categories),
        }


@dataclass(slots=True)
class _Snapshot:
    documents: Dict[str, DocumentMetadata]
    contents: Dict[str, str]
    stats: IndexStats


class DocumentIndex:
    """Lazily scans a :class:`ContentSource` into an id -> metadata map.

    The first reader triggers the scan; concurrent readers wait on the same
    lock and reuse its result. Once published a snapshot is never mutated
    except for the per-id content cache, so steady-state reads take no lock.
    """

    def __init__(
        self,
        source: ContentSource,
        categories: Iterable[DocumentCategory] = tuple(DocumentCategory),
    ) -> None:
        self.source = source
        self.categories = tuple(categories)
        self._lock = threading.Lock()
        self._snapshot: Optional[_Snapshot] = None

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    def ensure_initialized(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._scan()
            return self._snapshot

    def refresh(self) -> IndexStats:
        """Rescan the source and swap in the new map in one assignment."""
        with self._lock:
            LOGGER.info("Refreshing documentation index")
            snapshot = self._scan()
            self._snapshot = snapshot
        return snapshot.stats

    @property
    def stats(self) -> IndexStats:
        return self.ensure_initialized().stats

    def documents(self) -> List[DocumentMetadata]:
        return list(self.ensure_initialized().documents.values())

    def get(self, doc_id: str) -> Optional[DocumentMetadata]:
        return self.ensure_initialized().documents.get(doc_id.strip().lower())

    def fetch_text(self, metadata: DocumentMetadata) -> str:
        """Raw markdown for ``metadata``, served from cache when allowed.

        Raises:
            NotFoundError: if the file vanished from the source.
            SourceUnavailableError: on any other fetch failure.
        """
        snapshot = self.ensure_initialized()
        cached = snapshot.contents.get(metadata.id)
        if cached is not None:
            return cached
        text = self.source.fetch_text(metadata.source_path)
        if self.source.cache_content:
            # Racing fetches of the same id store identical text; first one wins.
            return snapshot.contents.setdefault(metadata.id, text)
        return text

    def _scan(self) -> _Snapshot:
        LOGGER.info("Initializing documentation index from %r", self.source)
        documents: Dict[str, DocumentMetadata] = {}
        contents: Dict[str, str] = {}
        stats = IndexStats()

        for category in self.categories:
            folder = join_path(self.source.base_path, category.value)
            try:
                entries = list(iter_markdown_entries(self.source, folder))
            except (SourceUnavailableError, RecursionError) as exc:
                LOGGER.error("Failed to scan category folder %s: %s", folder, exc)
                continue
            if not entries:
                LOGGER.debug("Category folder empty or missing: %s", folder)
                stats.missing_categories.append(category.value)
                continue

            for entry in entries:
                try:
                    text = self.source.fetch_text(entry.path)
                    extracted = extract_metadata(text, category, file_stem(entry.name))
                except (NotFoundError, SourceUnavailableError) as exc:
                    LOGGER.error("Failed to process documentation file %s: %s", entry.path, exc)
                    stats.increment("failed", entry.path)
                    continue

                metadata = DocumentMetadata(
                    id=document_id(category, entry.path),
                    title=extracted.title,
                    category=category,
                    source_path=entry.path,
                    description=extracted.description,
                    tags=extracted.tags,
                    language=extracted.language,
                )
                if metadata.id in documents:
                    LOGGER.warning(
                        "Duplicate document id %s from %s, keeping %s",
                        metadata.id,
                        entry.path,
                        documents[metadata.id].source_path,
                    )
                    stats.increment("duplicate", entry.path)
                    continue

                documents[metadata.id] = metadata
                if self.source.cache_content:
                    contents[metadata.id] = text
                stats.increment("loaded", entry.path)

        LOGGER.info(
            "Initialized %d documentation files (%d failed, %d duplicates)",
            stats.loaded,
            stats.failed,
            stats.duplicates,
        )
        return _Snapshot(documents, contents, stats)

