"""Document source configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Tuple

from docserve.errors import InvalidArgumentError
from docserve.models import DocumentCategory

DEFAULT_GITHUB_OWNER = "wigo4it"
DEFAULT_GITHUB_REPO = "wigo4it-code-conventions-mcp"
DEFAULT_BRANCH = "main"
DEFAULT_DOCS_PATH = "docs"
DEFAULT_TIMEOUT = 10.0

ENV_PREFIX = "DOCSERVE_"


class SourceKind(str, Enum):
    LOCAL = "local"
    GITHUB = "github"

    @classmethod
    def parse(cls, value: "str | SourceKind") -> "SourceKind":
        if isinstance(value, SourceKind):
            return value
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise InvalidArgumentError(
            f"Unknown source kind '{value}'. Expected one of: local, github"
        )


def _find_repository_root(start: Path) -> Path:
    """Walk up from ``start`` to the first folder holding ``.git`` or ``docs``."""
    for candidate in (start, *start.parents):
        if (candidate / ".git").is_dir() or (candidate / DEFAULT_DOCS_PATH).is_dir():
            return candidate
    return start


def _get_default_base_path() -> Path:
    return _find_repository_root(Path.cwd()) / DEFAULT_DOCS_PATH


@dataclass(slots=True)
class DocumentSourceConfig:
    kind: SourceKind = SourceKind.LOCAL
    base_path: Path | None = None
    github_owner: str = DEFAULT_GITHUB_OWNER
    github_repo: str = DEFAULT_GITHUB_REPO
    github_branch: str = DEFAULT_BRANCH
    docs_path: str = DEFAULT_DOCS_PATH
    github_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    categories: Tuple[DocumentCategory, ...] = field(
        default_factory=lambda: tuple(DocumentCategory)
    )

    def __post_init__(self) -> None:
        self.kind = SourceKind.parse(self.kind)
        if self.base_path is None and self.kind is SourceKind.LOCAL:
            self.base_path = _get_default_base_path()
        self.docs_path = self.docs_path.strip("/")

    def resolve_base_path(self, base_dir: Path | None = None) -> Path:
        if self.base_path is None:
            self.base_path = _get_default_base_path()
        if Path(self.base_path).is_absolute() or base_dir is None:
            return Path(self.base_path)
        return base_dir / self.base_path

    def describe(self) -> str:
        """Human readable location, used in log lines and CLI output."""
        if self.kind is SourceKind.GITHUB:
            return (
                f"github:{self.github_owner}/{self.github_repo}"
                f"@{self.github_branch}/{self.docs_path}"
            )
        return str(self.resolve_base_path(Path.cwd()))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DocumentSourceConfig":
        """Build a configuration from ``DOCSERVE_*`` environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name) or default

        raw_timeout = get("TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid timeout '{raw_timeout}'") from exc

        base_path = env.get(ENV_PREFIX + "BASE_PATH")
        return cls(
            kind=SourceKind.parse(get("SOURCE", SourceKind.LOCAL.value)),
            base_path=Path(base_path) if base_path else None,
            github_owner=get("GITHUB_OWNER", DEFAULT_GITHUB_OWNER),
            github_repo=get("GITHUB_REPO", DEFAULT_GITHUB_REPO),
            github_branch=get("GITHUB_BRANCH", DEFAULT_BRANCH),
            docs_path=get("DOCS_PATH", DEFAULT_DOCS_PATH),
            github_token=env.get("GITHUB_TOKEN") or None,
            timeout=timeout,
        )
