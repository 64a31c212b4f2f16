"""Shared fixtures: a small guidelines corpus on disk and an in-memory source."""

from __future__ import annotations

import threading
import time
from collections import Counter
from pathlib import Path
from typing import Dict, List, Set

import pytest

from docserve.errors import NotFoundError, SourceUnavailableError
from docserve.index.indexer import DocumentIndex
from docserve.index.search import QueryEngine
from docserve.ingestion.sources import Entry, LocalContentSource

ADR_ASPIRE = """---
tags: [Architecture, Aspire]
---
# Use Aspire for Development

Aspire simplifies orchestration of local services.

## Decision
We use aspire for all new services.
"""

ADR_MCP = """# Use MCP Server

Expose guidelines through the model context protocol.

Tags: architecture, mcp
"""

TESTING = """# Testing Recommendations

Write unit tests for every service.

We might use aspire in the future.
"""

CSHARP_NAMING = """---
tags:
  - naming
  - "conventions"
---
# C# Naming Conventions

Use PascalCase for public members.
"""

CORPUS: Dict[str, str] = {
    "ADRs/adr-001-use-aspire.md": ADR_ASPIRE,
    "ADRs/adr-002-use-mcp.md": ADR_MCP,
    "Recommendations/testing.md": TESTING,
    "StyleGuides/csharp-naming.md": CSHARP_NAMING,
}


def write_docs(root: Path, files: Dict[str, str]) -> Path:
    for relative, text in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's DOCSERVE_* settings out of the tests."""
    for name in (
        "DOCSERVE_SOURCE",
        "DOCSERVE_BASE_PATH",
        "DOCSERVE_GITHUB_OWNER",
        "DOCSERVE_GITHUB_REPO",
        "DOCSERVE_GITHUB_BRANCH",
        "DOCSERVE_DOCS_PATH",
        "DOCSERVE_TIMEOUT",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    return write_docs(tmp_path / "docs", CORPUS)


@pytest.fixture
def engine(docs_dir: Path) -> QueryEngine:
    return QueryEngine(DocumentIndex(LocalContentSource(docs_dir)))


class FakeSource:
    """In-memory ContentSource with failure injection and call counting."""

    def __init__(
        self,
        files: Dict[str, str],
        *,
        base_path: str = "",
        cache_content: bool = True,
        delay: float = 0.0,
    ) -> None:
        self.files = dict(files)
        self.base_path = base_path
        self.cache_content = cache_content
        self.delay = delay
        self.failing_paths: Set[str] = set()
        self.failing_folders: Set[str] = set()
        self.list_calls: Counter = Counter()
        self.fetch_calls: Counter = Counter()
        self._lock = threading.Lock()

    def list_entries(self, path: str) -> List[Entry]:
        with self._lock:
            self.list_calls[path] += 1
        if self.delay:
            time.sleep(self.delay)
        if path in self.failing_folders:
            raise SourceUnavailableError(f"listing {path} failed")

        prefix = path.strip("/") + "/"
        seen: Dict[str, Entry] = {}
        for file_path in sorted(self.files):
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            head = rest.split("/", 1)[0]
            if "/" in rest:
                seen.setdefault(head, Entry(head, prefix + head, "dir"))
            else:
                seen[head] = Entry(head, file_path, "file")
        return list(seen.values())

    def fetch_text(self, path: str) -> str:
        with self._lock:
            self.fetch_calls[path] += 1
        if path in self.failing_paths:
            raise SourceUnavailableError(f"fetch of {path} failed")
        try:
            return self.files[path]
        except KeyError as exc:
            raise NotFoundError(path) from exc

    def close(self) -> None:
        pass


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource(CORPUS)


@pytest.fixture
def make_source():
    return FakeSource


@pytest.fixture
def corpus() -> Dict[str, str]:
    return dict(CORPUS)
