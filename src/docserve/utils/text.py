"""Text helpers for matching, excerpts and keyword extraction."""

from __future__ import annotations

import re
from typing import FrozenSet, Set

EXCERPT_MAX_CHARS = 200
EXCERPT_ELLIPSIS = "..."
MIN_KEYWORD_LENGTH = 4

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had", "her",
        "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "man",
        "new", "now", "old", "see", "two", "way", "who", "boy", "did", "its", "let",
        "put", "say", "she", "too", "use", "this", "that", "with", "have", "from", "they",
    }
)

_NON_WORD = re.compile(r"\W+")


def count_occurrences(text: str, term: str) -> int:
    """Count non-overlapping, case-insensitive occurrences of ``term``."""
    if not text or not term:
        return 0
    return text.lower().count(term.lower())


def make_excerpt(line: str, term: str, *, max_chars: int = EXCERPT_MAX_CHARS) -> str:
    """Trim ``line`` to at most ``max_chars`` around the first match of ``term``.

    Lines that already fit are returned stripped. Longer lines keep a window
    starting up to half the budget before the match, with ``...`` marking
    each cut side.
    """
    excerpt = line.strip()
    if len(excerpt) <= max_chars:
        return excerpt

    index = max(excerpt.lower().find(term.lower()), 0)
    start = max(0, index - max_chars // 2)
    length = min(max_chars, len(excerpt) - start)
    prefix = EXCERPT_ELLIPSIS if start > 0 else ""
    suffix = EXCERPT_ELLIPSIS if start + length < len(excerpt) else ""
    return f"{prefix}{excerpt[start : start + length]}{suffix}"


def extract_keywords(text: str) -> Set[str]:
    """Lower-cased words longer than three characters, minus stop words."""
    return {
        word
        for word in _NON_WORD.split(text.lower())
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    }
