"""Extractive answer synthesis.

The answer body is always the same: excerpts of the best ranked chunks
followed by a list of related document titles. Only the framing sentence
depends on what kind of question was asked.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Sequence

from docquery.index.scoring import ScoredChunk, best_per_document
from docquery.models import QueryResponse, Source
from docquery.utils.text import excerpt_window, normalize_text, tokenize

NOT_FOUND_ANSWER = (
    "I couldn't find specific information about that in the documentation. "
    "Try rephrasing your question or browse the main sections."
)
EMPTY_QUERY_ANSWER = "Please enter a question about the documentation."

MAX_EXCERPTS = 3
EXCERPT_CHARS = 300
SOURCE_LIMIT = 5


class QueryIntent(str, Enum):
    HOW_TO = "how-to"
    DEFINITION = "definition"
    EXAMPLE = "example"
    GENERAL = "general"


# Evaluated in order, first match wins
INTENT_RULES = (
    (QueryIntent.HOW_TO, re.compile(r"\bhow (?:to|do i)\b")),
    (QueryIntent.DEFINITION, re.compile(r"^what (?:is|are)\b|\bdefine\b")),
    (QueryIntent.EXAMPLE, re.compile(r"\bshow me\b|\bexamples?\b")),
)

HOW_TO_PREFIX = re.compile(r"^.*?\bhow (?:to|do i)\b\s*", re.IGNORECASE)
DEFINITION_PREFIX = re.compile(r"^\s*(?:what (?:is|are)|define)\s+", re.IGNORECASE)


def classify_intent(query: str) -> QueryIntent:
    normalized = normalize_text(query)
    for intent, pattern in INTENT_RULES:
        if pattern.search(normalized):
            return intent
    return QueryIntent.GENERAL


def _subject(query: str, prefix: re.Pattern[str]) -> str:
    return prefix.sub("", query.strip()).rstrip(" ?.!").strip()


def _frame_how_to(query: str) -> str:
    subject = _subject(query, HOW_TO_PREFIX)
    return f"Here's how you can {subject}:" if subject else "Here's how to do that:"


def _frame_definition(query: str) -> str:
    subject = _subject(query, DEFINITION_PREFIX)
    if subject:
        return f"Here's what the documentation says about {subject}:"
    return "Here's what the documentation says:"


def _frame_example(query: str) -> str:
    return "Here are relevant examples from the documentation:"


def _frame_general(query: str) -> str:
    return "Based on the documentation:"


FRAMES: Dict[QueryIntent, Callable[[str], str]] = {
    QueryIntent.HOW_TO: _frame_how_to,
    QueryIntent.DEFINITION: _frame_definition,
    QueryIntent.EXAMPLE: _frame_example,
    QueryIntent.GENERAL: _frame_general,
}


def build_sources(
    query: str,
    ranked: Sequence[ScoredChunk],
    *,
    limit: int = SOURCE_LIMIT,
    excerpt_chars: int = EXCERPT_CHARS,
) -> List[Source]:
    """One citation per document, ordered by score then path."""
    terms = tokenize(query)
    return [
        Source(
            title=item.document.title,
            path=item.document.path,
            excerpt=excerpt_window(item.chunk.content, terms, max_chars=excerpt_chars),
            relevance_score=item.score,
        )
        for item in best_per_document(ranked)[:limit]
    ]


def _related_titles(ranked: Sequence[ScoredChunk], *, limit: int) -> List[str]:
    if limit <= 0:
        return []
    first_title = ranked[0].document.title
    titles: List[str] = []
    for item in ranked[1:]:
        title = item.document.title
        if title != first_title and title not in titles:
            titles.append(title)
        if len(titles) >= limit:
            break
    return titles


def synthesize(
    query: str,
    ranked: Sequence[ScoredChunk],
    *,
    source_limit: int = SOURCE_LIMIT,
    excerpt_chars: int = EXCERPT_CHARS,
    now: Callable[[], datetime] = datetime.now,
) -> QueryResponse:
    """Assemble an answer with citations from ranked chunks.

    No ranked chunks is a normal outcome and yields the not-found answer.
    """
    if not ranked:
        return QueryResponse(answer=NOT_FOUND_ANSWER, sources=[], timestamp=now())

    terms = tokenize(query)
    intent = classify_intent(query)
    excerpts = [
        excerpt_window(item.chunk.content, terms, max_chars=excerpt_chars)
        for item in ranked[:MAX_EXCERPTS]
    ]

    parts = [FRAMES[intent](query), "\n\n".join(excerpt for excerpt in excerpts if excerpt)]
    related = _related_titles(ranked, limit=source_limit - 1)
    if related:
        parts.append("Related:\n" + "\n".join(f"- {title}" for title in related))

    return QueryResponse(
        answer="\n\n".join(part for part in parts if part),
        sources=build_sources(query, ranked, limit=source_limit, excerpt_chars=excerpt_chars),
        timestamp=now(),
    )
