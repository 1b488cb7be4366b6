"""FastAPI request/response adapter for the documentation service."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from docquery.config import AppConfig
from docquery.errors import PathNotFoundError
from docquery.index.indexer import build_index
from docquery.service import DocumentationService

LOGGER = logging.getLogger(__name__)

MAX_LIMIT = 50

router = APIRouter()


class SearchPayload(BaseModel):
    query: str
    limit: int = 10


class AskPayload(BaseModel):
    query: str


def _build_service(config: AppConfig | None = None) -> DocumentationService:
    config = config or AppConfig()
    root = config.resolve_content_dir(Path.cwd())
    index = build_index(root, chunk_chars=config.chunk_chars, extensions=config.extensions)
    return DocumentationService(index, config=config)


def get_service(request: Request) -> DocumentationService:
    """Service attached to the app, built from the default config on first use."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        service = _build_service()
        request.app.state.service = service
    return service


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    yield


@router.post("/query")
async def query_documentation(
    payload: Dict[str, Any] = Body(...),
    service: DocumentationService = Depends(get_service),
) -> Dict[str, Any]:
    return service.handle(payload).model_dump()


@router.post("/search")
async def search_documents(
    payload: SearchPayload, service: DocumentationService = Depends(get_service)
) -> Dict[str, List[Dict[str, Any]]]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    limit = max(1, min(payload.limit, MAX_LIMIT))
    results = service.search(query, limit=limit)
    return {"results": [result.to_dict() for result in results]}


@router.post("/ask")
async def ask_question(
    payload: AskPayload, service: DocumentationService = Depends(get_service)
) -> Dict[str, Any]:
    return service.ask(payload.query).to_dict()


@router.get("/content/{path:path}")
async def get_content(
    path: str, service: DocumentationService = Depends(get_service)
) -> Dict[str, Any]:
    try:
        content = service.get_content(path)
    except PathNotFoundError as exc:
        raise HTTPException(
            status_code=404, detail={"error": str(exc), "suggestions": exc.suggestions}
        ) from exc
    return {"path": path, "content": content, "length": len(content)}


@router.get("/paths")
async def list_paths(service: DocumentationService = Depends(get_service)) -> Dict[str, Any]:
    paths = service.list_paths()
    return {"paths": paths, "count": len(paths)}


@router.get("/stats")
async def corpus_stats(service: DocumentationService = Depends(get_service)) -> Dict[str, Any]:
    return service.stats().to_dict()


@router.get("/outline")
async def outline(service: DocumentationService = Depends(get_service)) -> Dict[str, Any]:
    return service.outline()


@router.get("/validate")
async def validate_path(
    path: str, service: DocumentationService = Depends(get_service)
) -> Dict[str, Any]:
    return service.validate_path(path).to_dict()


@router.post("/reload")
async def reload_index(service: DocumentationService = Depends(get_service)) -> Dict[str, Any]:
    """Rebuild the index from disk and swap it in once complete."""
    config = service.config
    root = config.resolve_content_dir(Path.cwd())
    try:
        index = await asyncio.to_thread(
            build_index, root, chunk_chars=config.chunk_chars, extensions=config.extensions
        )
    except Exception as exc:  # pragma: no cover
        LOGGER.exception("Reindexing failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    service.swap_index(index)
    return {
        "status": "ok",
        "documents": len(index),
        "diagnostics": [diagnostic.kind + ": " + diagnostic.path for diagnostic in index.diagnostics],
    }


def create_app(service: DocumentationService | None = None) -> FastAPI:
    application = FastAPI(title="docquery", version="0.1.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    if service is not None:
        application.state.service = service
    return application


app = create_app()
