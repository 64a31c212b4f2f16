"""Tool functions exposed to MCP clients.

Each function takes the :class:`QueryEngine` plus plain string/int
arguments and returns an indented JSON string. Caller mistakes and unknown
documents come back as ``{"error": "..."}`` instead of raising.
"""

from __future__ import annotations

import json
from typing import Any

from docserve.errors import InvalidArgumentError
from docserve.index.search import DEFAULT_RELATED_RESULTS, QueryEngine
from docserve.models import DocumentCategory


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _error(message: str) -> str:
    return _dumps({"error": message})


def get_all_documents(engine: QueryEngine) -> str:
    return _dumps([doc.to_dict() for doc in engine.list_all()])


def get_document_by_id_or_path(engine: QueryEngine, id_or_path: str) -> str:
    try:
        content = engine.fetch_content(id_or_path)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    if content is None:
        return _error(f"Documentation with ID or path '{id_or_path}' not found")
    return _dumps(content.to_dict())


def get_documents_by_category(engine: QueryEngine, category: str) -> str:
    try:
        docs = engine.by_category(category)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    return _dumps([doc.to_dict() for doc in docs])


def get_documents_by_tags(engine: QueryEngine, tags: str) -> str:
    try:
        docs = engine.by_tags(tags)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    return _dumps([doc.to_dict() for doc in docs])


def get_documents_by_language(engine: QueryEngine, language: str) -> str:
    try:
        docs = engine.by_language(language)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    return _dumps([doc.to_dict() for doc in docs])


def search_documents(engine: QueryEngine, term: str) -> str:
    try:
        results = engine.search(term)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    return _dumps([result.to_dict() for result in results])


def get_related_documents(
    engine: QueryEngine, doc_id: str, max_results: int = DEFAULT_RELATED_RESULTS
) -> str:
    try:
        docs = engine.related(doc_id, max_results)
    except InvalidArgumentError as exc:
        return _error(str(exc))
    return _dumps([doc.to_dict() for doc in docs])


def _tag_order(item: tuple) -> tuple:
    tag, count = item
    return -count, tag.lower()


def get_all_tags(engine: QueryEngine) -> str:
    tags = engine.all_tags()
    return _dumps([{"tag": tag, "count": count} for tag, count in sorted(tags.items(), key=_tag_order)])


def refresh_documents(engine: QueryEngine) -> str:
    stats = engine.refresh()
    return _dumps({"status": "ok", **stats.to_dict()})


CATEGORY_HELP = ", ".join(DocumentCategory.names())
