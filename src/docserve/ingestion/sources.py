"""Content sources: where markdown documents are read from.

Two adapters satisfy :class:`ContentSource`. :class:`LocalContentSource`
reads a folder on disk and :class:`GitHubContentSource` talks to the GitHub
contents API plus ``raw.githubusercontent.com``. Both are plain I/O; all
parsing and indexing happens elsewhere.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, runtime_checkable

import httpx

from docserve.config import DocumentSourceConfig, SourceKind
from docserve.errors import NotFoundError, SourceUnavailableError

LOGGER = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"
USER_AGENT = "docserve-mcp/0.1"


@dataclass(frozen=True, slots=True)
class Entry:
    name: str
    path: str
    kind: str  # "file" or "dir"

    @property
    def is_dir(self) -> bool:
        return self.kind == "dir"

    @property
    def is_markdown(self) -> bool:
        return self.kind == "file" and self.name.lower().endswith(".md")


@runtime_checkable
class ContentSource(Protocol):
    """Capability to enumerate and read documents."""

    #: Prefix joined in front of category folder names when scanning.
    base_path: str
    #: Whether text fetched once may be served again from memory.
    cache_content: bool

    def list_entries(self, path: str) -> List[Entry]:
        """List one level under ``path``; missing folders yield ``[]``."""
        ...

    def fetch_text(self, path: str) -> str:
        """Return the text at ``path``.

        Raises:
            NotFoundError: if nothing exists at ``path``.
            SourceUnavailableError: on any other I/O failure.
        """
        ...

    def close(self) -> None:
        ...


class LocalContentSource:
    """Reads markdown files below a root folder."""

    base_path = ""
    cache_content = False

    def __init__(self, root: Path) -> None:
        self.root = Path(os.path.realpath(Path(root).expanduser()))

    def __repr__(self) -> str:
        return f"LocalContentSource({str(self.root)!r})"

    def _resolve(self, path: str) -> Path:
        clean = path.replace("\\", "/").strip("/")
        if "\0" in clean:
            raise NotFoundError(f"Invalid path: {path!r}")
        resolved = Path(os.path.realpath(self.root / clean)) if clean else self.root
        # Symlinks and ".." must not escape the docs root.
        if resolved != self.root and not str(resolved).startswith(str(self.root) + os.sep):
            raise NotFoundError(f"Path outside documentation root: {path}")
        return resolved

    def list_entries(self, path: str) -> List[Entry]:
        try:
            folder = self._resolve(path)
        except NotFoundError:
            return []
        if not folder.is_dir():
            return []
        try:
            children = sorted(folder.iterdir(), key=lambda child: child.name)
        except OSError as exc:
            raise SourceUnavailableError(f"Unable to list {folder}: {exc}") from exc

        entries: List[Entry] = []
        for child in children:
            relative = child.relative_to(self.root).as_posix()
            if child.is_dir():
                real = os.path.realpath(child)
                if str(folder) == real or str(folder).startswith(real + os.sep):
                    LOGGER.debug("Skipping symlink loop %s -> %s", relative, real)
                    continue
                entries.append(Entry(child.name, relative, "dir"))
            elif child.is_file():
                entries.append(Entry(child.name, relative, "file"))
        return entries

    def fetch_text(self, path: str) -> str:
        target = self._resolve(path)
        try:
            return target.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFoundError(f"File not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailableError(f"Unable to read {target}: {exc}") from exc

    def close(self) -> None:
        pass


class GitHubContentSource:
    """Reads markdown files from a GitHub repository.

    Directory listings come from the contents API (one level per call) and
    file bodies from the raw-content host. Paths are repository paths, so
    ``base_path`` is the docs folder inside the repository.
    """

    cache_content = True

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        branch: str = "main",
        docs_path: str = "docs",
        token: str | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.base_path = docs_path.strip("/")
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._headers = headers

    def __repr__(self) -> str:
        return f"GitHubContentSource({self.owner}/{self.repo}@{self.branch})"

    def _get(self, url: str, **params: str) -> httpx.Response:
        try:
            return self._client.get(url, headers=self._headers, params=params or None)
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"Request to {url} failed: {exc}") from exc

    def list_entries(self, path: str) -> List[Entry]:
        url = f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/contents/{path.strip('/')}"
        response = self._get(url, ref=self.branch)
        if response.status_code == 404:
            LOGGER.debug("Folder not found on GitHub: %s", path)
            return []
        if response.is_error:
            raise SourceUnavailableError(
                f"GitHub listing of {path} failed with HTTP {response.status_code}"
            )
        try:
            items = response.json()
        except ValueError as exc:
            raise SourceUnavailableError(f"Malformed GitHub listing for {path}") from exc
        if not isinstance(items, list):
            # The API returns a single object when ``path`` is a file.
            raise SourceUnavailableError(f"GitHub path {path} is not a directory")

        entries: List[Entry] = []
        for item in items:
            if not isinstance(item, dict) or "name" not in item or "path" not in item:
                raise SourceUnavailableError(f"Malformed GitHub listing for {path}")
            kind = item.get("type")
            if kind in ("file", "dir"):
                entries.append(Entry(str(item["name"]), str(item["path"]), kind))
        return entries

    def fetch_text(self, path: str) -> str:
        url = f"{GITHUB_RAW_URL}/{self.owner}/{self.repo}/{self.branch}/{path.strip('/')}"
        response = self._get(url)
        if response.status_code == 404:
            raise NotFoundError(f"File not found on GitHub: {path}")
        if response.is_error:
            raise SourceUnavailableError(
                f"GitHub fetch of {path} failed with HTTP {response.status_code}"
            )
        return response.text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def create_source(config: DocumentSourceConfig) -> ContentSource:
    """Instantiate the adapter selected by ``config.kind``."""
    if config.kind is SourceKind.GITHUB:
        return GitHubContentSource(
            config.github_owner,
            config.github_repo,
            branch=config.github_branch,
            docs_path=config.docs_path,
            token=config.github_token,
            timeout=config.timeout,
        )
    return LocalContentSource(config.resolve_base_path(Path.cwd()))
