"""Keyword search interface over a document index."""

from __future__ import annotations

import logging
from difflib import SequenceMatcher
from typing import Iterable, List

from docquery.errors import EmptyQueryError
from docquery.index.scoring import (
    DEFAULT_WEIGHTS,
    ScoredChunk,
    ScoringWeights,
    best_per_document,
    rank_chunks,
    score_terms,
)
from docquery.index.storage import DocumentIndex
from docquery.models import SearchResult
from docquery.utils.text import STOPWORDS, excerpt_window, path_tokens, tokenize

LOGGER = logging.getLogger(__name__)

MIN_PREFIX = 3


class Searcher:
    """High-level API to query a document index."""

    def __init__(
        self,
        index: DocumentIndex,
        *,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        excerpt_chars: int = 300,
    ) -> None:
        self.index = index
        self.weights = weights
        self.excerpt_chars = excerpt_chars

    def rank(self, query: str) -> List[ScoredChunk]:
        """All matching chunks for ``query``, best first."""
        if not query or not query.strip():
            raise EmptyQueryError()
        terms = tokenize(query)
        ranked = rank_chunks(terms, self.index.iter_chunks(), weights=self.weights)
        LOGGER.debug("Query %r -> terms %s, %d matching chunks", query, terms, len(ranked))
        return ranked

    def excerpt(self, item: ScoredChunk, query: str) -> str:
        return excerpt_window(item.chunk.content, tokenize(query), max_chars=self.excerpt_chars)

    def search(self, query: str, *, top_k: int | None = 10) -> List[SearchResult]:
        """Best matching documents, one result per document."""
        ranked = best_per_document(self.rank(query))
        if top_k is not None:
            ranked = ranked[: max(top_k, 0)]
        return [
            SearchResult(
                path=item.document.path,
                title=item.document.title,
                excerpt=self.excerpt(item, query),
                relevance_score=item.score,
                category=item.document.category,
                heading=item.chunk.heading,
            )
            for item in ranked
        ]

    def suggest(self, path: str, *, limit: int = 5) -> List[str]:
        """Paths whose titles best match the segments of an unknown path."""
        terms = [term for term in path_tokens(path) if term not in STOPWORDS]
        scored = []
        for document in self.index.documents.values():
            value = score_terms(
                terms, title=document.title, path=document.path, weights=self.weights
            )
            if value > 0:
                scored.append((-value, document.path))
        scored.sort()
        return [doc_path for _, doc_path in scored[:limit]]


def _token_overlap(query_tokens: List[str], candidate_tokens: List[str]) -> float:
    """Shared tokens count 1, prefix matches of three or more characters 0.5."""
    overlap = 0.0
    for token in query_tokens:
        best = 0.0
        for other in candidate_tokens:
            if token == other:
                best = 1.0
                break
            shorter, longer = sorted((token, other), key=len)
            if len(shorter) >= MIN_PREFIX and longer.startswith(shorter):
                best = 0.5
        overlap += best
    return overlap


def nearest_paths(path: str, candidates: Iterable[str], *, limit: int = 3) -> List[str]:
    """Known paths closest to ``path`` by overlap of their segment tokens.

    Candidates sharing nothing are dropped; ties go to the closer spelling,
    then to the smaller path.
    """
    query_tokens = path_tokens(path)
    if not query_tokens:
        return []

    ranked = []
    for candidate in candidates:
        overlap = _token_overlap(query_tokens, path_tokens(candidate))
        if overlap <= 0:
            continue
        similarity = SequenceMatcher(None, path.lower(), candidate.lower()).ratio()
        ranked.append((-overlap, -similarity, candidate))
    ranked.sort()
    return [candidate for _, _, candidate in ranked[:limit]]
