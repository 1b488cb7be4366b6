"""Weighted keyword relevance scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Sequence

from docquery.models import Chunk, Document
from docquery.utils.text import contains_term, count_term, normalize_text, tokenize


@dataclass(frozen=True, slots=True)
class ScoringWeights:
    """Tunable weights; the defaults are hand-picked rather than fitted."""

    title: float = 5.0
    heading: float = 3.0
    path: float = 2.0
    body: float = 1.0
    body_cap: int = 5
    coverage_bonus: float = 1.2


DEFAULT_WEIGHTS = ScoringWeights()


class ScoredChunk(NamedTuple):
    score: float
    document: Document
    chunk: Chunk


def score_terms(
    terms: Sequence[str],
    *,
    title: str = "",
    heading: str = "",
    body: str = "",
    path: str = "",
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Score pre-tokenized terms against the searchable fields of a candidate."""
    if not terms:
        return 0.0

    title = normalize_text(title)
    heading = normalize_text(heading)
    path_text = normalize_text(path.replace("/", " "))
    body = normalize_text(body)
    total = 0.0
    matched = 0
    for term in terms:
        hit = 0.0
        if title and contains_term(term, title):
            hit += weights.title
        if heading and contains_term(term, heading):
            hit += weights.heading
        if path_text and contains_term(term, path_text):
            hit += weights.path
        if body:
            hit += weights.body * min(count_term(term, body), weights.body_cap)
        if hit:
            matched += 1
            total += hit

    if matched == len(terms):
        total *= weights.coverage_bonus
    return round(total, 6)


def score_chunk(
    terms: Sequence[str],
    chunk: Chunk,
    document: Document,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    return score_terms(
        terms,
        title=document.title,
        heading=chunk.heading,
        body=chunk.text,
        path=document.path,
        weights=weights,
    )


def score(
    query: str,
    chunk: Chunk,
    document: Document,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Relevance of ``chunk`` (owned by ``document``) for a raw query string."""
    return score_chunk(tokenize(query), chunk, document, weights)


def sort_key(item: ScoredChunk) -> tuple:
    return (-item.score, item.document.path, item.chunk.offset)


def rank_chunks(
    terms: Sequence[str],
    candidates: Iterable[tuple[Document, Chunk]],
    *,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    limit: int | None = None,
) -> List[ScoredChunk]:
    """Score every candidate and return the non-zero ones, best first.

    Equal scores fall back to the lexicographically smaller document path,
    then to the earlier chunk.
    """
    if not terms:
        return []

    scored = []
    for document, chunk in candidates:
        value = score_chunk(terms, chunk, document, weights)
        if value > 0:
            scored.append(ScoredChunk(value, document, chunk))
    scored.sort(key=sort_key)
    return scored if limit is None else scored[: max(limit, 0)]


def best_per_document(ranked: Iterable[ScoredChunk]) -> List[ScoredChunk]:
    """Keep the highest ranked chunk of each document, preserving order."""
    seen: set[str] = set()
    best: List[ScoredChunk] = []
    for item in ranked:
        if item.document.path in seen:
            continue
        seen.add(item.document.path)
        best.append(item)
    return best
