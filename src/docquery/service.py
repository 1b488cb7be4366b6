"""Query façade over a built documentation index.

Every operation reads the active index once at the start, so swapping in a
freshly built index never disturbs a query that is already running.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from docquery.answer.synthesizer import EMPTY_QUERY_ANSWER, synthesize
from docquery.config import AppConfig
from docquery.errors import EmptyQueryError, PathNotFoundError
from docquery.index.scoring import DEFAULT_WEIGHTS, ScoringWeights
from docquery.index.search import Searcher, nearest_paths
from docquery.index.storage import DocumentIndex
from docquery.models import CorpusStats, Document, PathValidation, QueryResponse, SearchResult

LOGGER = logging.getLogger(__name__)

OPERATIONS = ("content", "search", "ask", "paths", "stats", "outline", "validate")
FLAG_OPERATIONS = ("paths", "stats", "outline")
RELATED_LIMIT = 5


class DocumentationQuery(BaseModel):
    """A single request naming exactly one operation."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    content: str | None = None
    search: str | None = None
    limit: int | None = Field(default=None, ge=1)
    ask: str | None = None
    # Flag operations are requested by key presence; only an explicit false opts out
    paths: bool | None = None
    stats: bool | None = None
    outline: bool | None = None
    validate_path: str | None = Field(default=None, alias="validate")

    @model_validator(mode="after")
    def _exactly_one_operation(self) -> "DocumentationQuery":
        requested = [name for name in OPERATIONS if self._requested(name)]
        if len(requested) != 1:
            raise ValueError(f"Exactly one of {', '.join(OPERATIONS)} must be given")
        if self.limit is not None and self.search is None:
            raise ValueError("limit applies only to search requests")
        return self

    def _requested(self, name: str) -> bool:
        if name == "validate":
            return self.validate_path is not None
        if name in FLAG_OPERATIONS:
            return name in self.model_fields_set and getattr(self, name) is not False
        return getattr(self, name) is not None

    @property
    def operation(self) -> str:
        return next(name for name in OPERATIONS if self._requested(name))


class QueryEnvelope(BaseModel):
    success: bool
    operation: str | None = None
    data: Any = None
    error: str | None = None
    suggestions: List[str] = Field(default_factory=list)


class DocumentationService:
    """Read-only operations on the active :class:`DocumentIndex`."""

    def __init__(
        self,
        index: DocumentIndex,
        *,
        config: AppConfig | None = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self._index = index
        self.config = config or AppConfig()
        self.weights = weights

    @property
    def index(self) -> DocumentIndex:
        return self._index

    def swap_index(self, index: DocumentIndex) -> DocumentIndex:
        """Replace the active index with a fully built one; returns the old index."""
        previous, self._index = self._index, index
        LOGGER.info("Swapped index: %d -> %d documents", len(previous), len(index))
        return previous

    def _searcher(self, index: DocumentIndex) -> Searcher:
        return Searcher(index, weights=self.weights, excerpt_chars=self.config.excerpt_chars)

    def get_document(self, path: str) -> Document:
        index = self._index
        document = index.get(path)
        if document is None:
            suggestions = self._searcher(index).suggest(path, limit=RELATED_LIMIT)
            raise PathNotFoundError(path, suggestions)
        return document

    def get_content(self, path: str) -> str:
        """Raw text of a document; raises :class:`PathNotFoundError` with suggestions."""
        return self.get_document(path).content

    def search(self, query: str, limit: int | None = None) -> List[SearchResult]:
        if limit is None:
            limit = self.config.search_limit
        return self._searcher(self._index).search(query, top_k=limit)

    def ask(self, query: str) -> QueryResponse:
        """Answer a question from the corpus. Never raises for empty or unmatched queries."""
        searcher = self._searcher(self._index)
        try:
            ranked = searcher.rank(query)
        except EmptyQueryError:
            return QueryResponse(answer=EMPTY_QUERY_ANSWER, sources=[])
        return synthesize(
            query,
            ranked,
            source_limit=self.config.source_limit,
            excerpt_chars=self.config.excerpt_chars,
        )

    def path_exists(self, path: str) -> bool:
        return path in self._index

    def list_paths(self) -> List[str]:
        return self._index.paths()

    def validate_path(self, path: str) -> PathValidation:
        index = self._index
        if path in index:
            return PathValidation(path=path, exists=True)
        suggestions = nearest_paths(path, index.paths(), limit=self.config.suggestion_limit)
        return PathValidation(path=path, exists=False, suggestions=suggestions)

    def related_paths(self, path: str, *, limit: int = RELATED_LIMIT) -> List[str]:
        """Other paths in the same category or sharing a path segment."""
        segments = path.split("/")
        related = []
        for candidate in self._index.paths():
            if candidate == path:
                continue
            parts = candidate.split("/")
            if parts[0] == segments[0] or any(part in segments for part in parts):
                related.append(candidate)
            if len(related) >= limit:
                break
        return related

    def stats(self) -> CorpusStats:
        index = self._index
        categories: List[str] = []
        for document in index.documents.values():
            if document.category not in categories:
                categories.append(document.category)
        return CorpusStats(
            total_documents=len(index),
            total_characters=index.total_characters,
            total_chunks=index.chunk_count,
            low_quality_documents=sum(1 for d in index.documents.values() if d.low_quality),
            categories=categories,
            diagnostics=len(index.diagnostics),
            generated=index.built_at,
        )

    def outline(self) -> Dict[str, Any]:
        """Paths grouped by top-level category, in index order."""
        index = self._index
        grouped: Dict[str, List[str]] = {}
        for path, document in index.documents.items():
            grouped.setdefault(document.category, []).append(path)
        return {
            "structure": [
                {"category": category, "paths": paths, "count": len(paths)}
                for category, paths in grouped.items()
            ],
            "total_files": len(index),
            "last_generated": index.built_at.isoformat(),
        }

    def handle(self, request: DocumentationQuery | Mapping[str, Any]) -> QueryEnvelope:
        """Dispatch a request to its operation; always returns an envelope."""
        if not isinstance(request, DocumentationQuery):
            try:
                request = DocumentationQuery.model_validate(request)
            except ValidationError as exc:
                message = "; ".join(error["msg"] for error in exc.errors())
                return QueryEnvelope(success=False, error=message)

        operation = request.operation
        try:
            data = self._dispatch(operation, request)
        except PathNotFoundError as exc:
            return QueryEnvelope(
                success=False, operation=operation, error=str(exc), suggestions=exc.suggestions
            )
        except EmptyQueryError as exc:
            return QueryEnvelope(success=False, operation=operation, error=str(exc))
        return QueryEnvelope(success=True, operation=operation, data=data)

    def _dispatch(self, operation: str, request: DocumentationQuery) -> Any:
        if operation == "content":
            path = request.content or ""
            document = self.get_document(path)
            return {
                "path": path,
                "title": document.title,
                "content": document.content,
                "length": len(document.content),
                "related_paths": self.related_paths(path),
            }
        if operation == "search":
            query = request.search or ""
            everything = self._searcher(self._index).search(query, top_k=None)
            results = everything[: request.limit or self.config.search_limit]
            return {
                "query": query,
                "results": [result.to_dict() for result in results],
                "total_results": len(everything),
            }
        if operation == "ask":
            return self.ask(request.ask or "").to_dict()
        if operation == "paths":
            paths = self.list_paths()
            return {"paths": paths, "count": len(paths)}
        if operation == "stats":
            return self.stats().to_dict()
        if operation == "outline":
            return self.outline()
        return self.validate_path(request.validate_path or "").to_dict()
