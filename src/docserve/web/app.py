"""FastAPI application exposing the documentation queries over HTTP."""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from docserve import __version__
from docserve.config import DocumentSourceConfig
from docserve.errors import InvalidArgumentError
from docserve.index.search import (
    DEFAULT_RELATED_RESULTS,
    MAX_RELATED_RESULTS,
    MIN_RELATED_RESULTS,
    QueryEngine,
    build_engine,
)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocServe", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_engine() -> QueryEngine:
    """Engine shared by all requests, configured from the environment."""
    return build_engine(DocumentSourceConfig.from_env())


def _bad_request(exc: InvalidArgumentError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/documents")
async def list_documents(engine: QueryEngine = Depends(get_engine)) -> dict[str, Any]:
    docs = await asyncio.to_thread(engine.list_all)
    return {"documents": [doc.to_dict() for doc in docs], "count": len(docs)}


@app.get("/documents/{id_or_path:path}")
async def get_document(id_or_path: str, engine: QueryEngine = Depends(get_engine)) -> dict[str, Any]:
    try:
        content = await asyncio.to_thread(engine.fetch_content, id_or_path)
    except InvalidArgumentError as exc:
        raise _bad_request(exc) from exc
    if content is None:
        raise HTTPException(status_code=404, detail=f"Document '{id_or_path}' not found")
    return content.to_dict()


@app.get("/categories/{category}")
async def documents_by_category(
    category: str, engine: QueryEngine = Depends(get_engine)
) -> dict[str, List[dict]]:
    try:
        docs = await asyncio.to_thread(engine.by_category, category)
    except InvalidArgumentError as exc:
        raise _bad_request(exc) from exc
    return {"documents": [doc.to_dict() for doc in docs]}


@app.get("/tags/all")
async def all_tags(engine: QueryEngine = Depends(get_engine)) -> dict[str, dict[str, int]]:
    tags = await asyncio.to_thread(engine.all_tags)
    return {"tags": tags}


@app.get("/tags")
async def documents_by_tags(
    tags: str = Query("", description="Comma-separated tags"),
    engine: QueryEngine = Depends(get_engine),
) -> dict[str, List[dict]]:
    try:
        docs = await asyncio.to_thread(engine.by_tags, tags)
    except InvalidArgumentError as exc:
        raise _bad_request(exc) from exc
    return {"documents": [doc.to_dict() for doc in docs]}


@app.get("/languages/{language}")
async def documents_by_language(
    language: str, engine: QueryEngine = Depends(get_engine)
) -> dict[str, List[dict]]:
    try:
        docs = await asyncio.to_thread(engine.by_language, language)
    except InvalidArgumentError as exc:
        raise _bad_request(exc) from exc
    return {"documents": [doc.to_dict() for doc in docs]}


@app.get("/search")
async def search_documents(
    q: str = Query("", description="Search term"),
    engine: QueryEngine = Depends(get_engine),
) -> dict[str, List[dict]]:
    query = q.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")
    results = await asyncio.to_thread(engine.search, query)
    return {"results": [result.to_dict() for result in results]}


@app.get("/related/{doc_id:path}")
async def related_documents(
    doc_id: str,
    max_results: int = Query(DEFAULT_RELATED_RESULTS),
    engine: QueryEngine = Depends(get_engine),
) -> dict[str, List[dict]]:
    if not MIN_RELATED_RESULTS <= max_results <= MAX_RELATED_RESULTS:
        raise HTTPException(
            status_code=400,
            detail=f"max_results must be between {MIN_RELATED_RESULTS} and {MAX_RELATED_RESULTS}",
        )
    docs = await asyncio.to_thread(engine.related, doc_id, max_results)
    return {"documents": [doc.to_dict() for doc in docs]}


@app.post("/refresh")
async def refresh_index(engine: QueryEngine = Depends(get_engine)) -> dict[str, Any]:
    try:
        stats = await asyncio.to_thread(engine.refresh)
    except Exception as exc:  # pragma: no cover - defensive
        LOGGER.exception("Refresh failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {"status": "ok", "stats": stats.to_dict()}
