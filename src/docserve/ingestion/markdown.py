"""Markdown metadata extraction.

Derives a title, a short description, tags and an optional language from
raw markdown. Tags come from one of two strategies tried in order: a YAML
front-matter block, then an inline ``Tags:`` line. Extraction never raises;
the worst case is the fallback title with no description and no tags.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from docserve.models import DocumentCategory

LOGGER = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"
DESCRIPTION_MAX_LINES = 3
QUOTE_CHARS = "\"'"

_INLINE_TAGS = re.compile(r"\b[Tt]ags:\s*(.+?)\s*$", re.MULTILINE)
_INLINE_LANGUAGE = re.compile(r"\b[Ll]anguage:\s*(.+?)\s*$", re.MULTILINE)
_TAG_SEPARATORS = re.compile(r"[,;]")

# Checked in order; "java" must come after "javascript".
_FILENAME_LANGUAGES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("csharp", "c-sharp"), "C#"),
    (("typescript",), "TypeScript"),
    (("javascript",), "JavaScript"),
    (("python",), "Python"),
    (("java",), "Java"),
)


@dataclass(slots=True)
class ExtractedMetadata:
    title: str
    category: DocumentCategory
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    language: Optional[str] = None


@dataclass(slots=True)
class FrontMatter:
    """Front-matter block split from the markdown body."""

    fields: Dict[str, Any]
    body_lines: List[str]
    present: bool


def _clean_tag(value: Any) -> str:
    return str(value).strip().strip(QUOTE_CHARS).strip()


def _split_tags(raw: str) -> List[str]:
    tags = [_clean_tag(part) for part in _TAG_SEPARATORS.split(raw)]
    return [tag for tag in tags if tag]


def split_front_matter(text: str) -> FrontMatter:
    """Separate a leading ``---`` delimited block from the rest of ``text``."""
    lines = text.lstrip("\ufeff").splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return FrontMatter({}, lines, False)

    closing = next(
        (i for i in range(1, len(lines)) if lines[i].strip() == FRONT_MATTER_DELIMITER),
        None,
    )
    if closing is None:
        return FrontMatter({}, lines, False)

    block_lines = lines[1:closing]
    block = "\n".join(block_lines)
    try:
        loaded = yaml.safe_load(block) if block.strip() else {}
    except yaml.YAMLError as exc:
        LOGGER.debug("Front-matter is not valid YAML, scanning lines instead: %s", exc)
        loaded = None
    if isinstance(loaded, dict):
        fields = {str(key).lower(): value for key, value in loaded.items()}
    else:
        fields = scan_front_matter_lines(block_lines)
    return FrontMatter(fields, lines[closing + 1 :], True)


def scan_front_matter_lines(block_lines: Sequence[str]) -> Dict[str, Any]:
    """Read ``key: value`` pairs from a front-matter block that YAML rejects.

    A ``[a, b]`` value becomes a list, and a key with no value collects the
    ``- item`` lines that follow it.
    """
    fields: Dict[str, Any] = {}
    current: Optional[str] = None
    for line in block_lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("- ") and current is not None:
            items = fields[current] if isinstance(fields[current], list) else []
            items.append(stripped[2:].strip())
            fields[current] = items
            continue

        key, sep, value = stripped.partition(":")
        if not sep or not key.strip():
            current = None
            continue
        key = key.strip().lower()
        value = value.strip()
        current = None
        if value.startswith("["):
            if value.endswith("]"):
                fields[key] = value[1:-1].split(",")
        elif value:
            fields[key] = value.strip(QUOTE_CHARS)
        else:
            fields[key] = None
            current = key
    return fields


def front_matter_tags(front: FrontMatter) -> Optional[List[str]]:
    """Tags from a front-matter ``tags`` key, or ``None`` if the key is absent.

    Accepts ``tags: [a, b]``, a ``- item`` block list, or a plain
    comma-separated string.
    """
    if not front.present or "tags" not in front.fields:
        return None
    value = front.fields["tags"]
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        tags = [_clean_tag(item) for item in value if item is not None]
        return [tag for tag in tags if tag]
    return _split_tags(str(value))


def inline_tags(body: str) -> List[str]:
    """Tags from the first ``Tags:`` line in ``body``."""
    match = _INLINE_TAGS.search(body)
    if not match:
        return []
    return _split_tags(match.group(1))


def extract_title(lines: Sequence[str], fallback: str) -> Tuple[str, Optional[int]]:
    """Return the first level-1 heading and its line index."""
    for index, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("# "):
            title = stripped[2:].strip()
            if title:
                return title, index
    return fallback, None


def extract_description(lines: Sequence[str], title_index: Optional[int]) -> Optional[str]:
    start = 0 if title_index is None else title_index + 1
    index = start
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped and not stripped.startswith("#"):
            break
        index += 1

    collected: List[str] = []
    while index < len(lines) and len(collected) < DESCRIPTION_MAX_LINES:
        stripped = lines[index].strip()
        if not stripped:
            break
        collected.append(stripped)
        index += 1

    description = " ".join(collected).strip()
    return description or None


def detect_language(file_name: str, front: FrontMatter, body: str) -> Optional[str]:
    lowered = file_name.lower()
    for needles, language in _FILENAME_LANGUAGES:
        if any(needle in lowered for needle in needles):
            return language

    value = front.fields.get("language")
    if value is not None and str(value).strip():
        return str(value).strip()

    match = _INLINE_LANGUAGE.search(body)
    return match.group(1) if match else None


def extract_metadata(
    raw_text: str, category: DocumentCategory, fallback_name: str
) -> ExtractedMetadata:
    """Extract document metadata from markdown text.

    Args:
        raw_text: Full file content.
        category: Category folder the file was found in.
        fallback_name: Title used when the file has no level-1 heading,
            normally the file name without extension.
    """
    try:
        front = split_front_matter(raw_text or "")
        body = "\n".join(front.body_lines)

        title, title_index = extract_title(front.body_lines, fallback_name)
        description = extract_description(front.body_lines, title_index)

        tags = front_matter_tags(front)
        if tags is None:
            tags = inline_tags(body)

        language = detect_language(fallback_name, front, body)
    except Exception as exc:  # pragma: no cover - defensive path
        LOGGER.warning("Falling back to defaults for %s: %s", fallback_name, exc)
        return ExtractedMetadata(title=fallback_name, category=category)

    return ExtractedMetadata(
        title=title,
        category=category,
        description=description,
        tags=tags,
        language=language,
    )
