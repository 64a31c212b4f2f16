"""Utility helpers for walking content sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from docserve.ingestion.sources import ContentSource, Entry


def iter_markdown_entries(source: "ContentSource", path: str) -> Iterator["Entry"]:
    """Yield markdown file entries under ``path``, descending into folders."""
    for entry in source.list_entries(path):
        if entry.is_dir:
            yield from iter_markdown_entries(source, entry.path)
        elif entry.is_markdown:
            yield entry


def file_stem(path: str) -> str:
    """File name without directory or ``.md`` extension."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    return name[:-3] if name.lower().endswith(".md") else name


def join_path(*parts: str) -> str:
    """Join source paths with ``/``, skipping empty segments."""
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))
