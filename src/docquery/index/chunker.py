"""Heading-aware chunking of documents."""

from __future__ import annotations

import re
from typing import Iterator, List, Tuple

from docquery.ingestion.markdown_loader import iter_headings
from docquery.models import Chunk, Document
from docquery.utils.text import iter_windows, normalize_text

DEFAULT_CHUNK_CHARS = 1500
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")

Span = Tuple[int, int]


def _sections(content: str) -> List[Tuple[int, int, str]]:
    """Split content at H1-H3 boundaries into ``(start, end, heading)`` spans."""
    bounds = [(0, "")] + [(h.offset, h.text) for h in iter_headings(content, max_level=3)]
    sections: List[Tuple[int, int, str]] = []
    for position, (start, heading) in enumerate(bounds):
        end = bounds[position + 1][0] if position + 1 < len(bounds) else len(content)
        if end > start:
            sections.append((start, end, heading))

    # Blank lines before the first heading belong to that heading's section
    if len(sections) > 1 and not sections[0][2] and not content[: sections[0][1]].strip():
        sections.pop(0)
        _, end, heading = sections[0]
        sections[0] = (0, end, heading)
    return sections


def _paragraph_spans(content: str, start: int, end: int) -> List[Span]:
    starts = [start] + [start + m.end() for m in PARAGRAPH_BREAK.finditer(content[start:end])]
    starts = sorted(set(s for s in starts if s < end))
    return [(s, starts[i + 1] if i + 1 < len(starts) else end) for i, s in enumerate(starts)]


def _split_section(content: str, start: int, end: int, max_chars: int) -> Iterator[Span]:
    """Group paragraphs into spans whose normalized text stays under ``max_chars``."""
    if len(normalize_text(content[start:end])) <= max_chars:
        yield start, end
        return

    paragraphs = _paragraph_spans(content, start, end)
    for span_start, span_end in _group_paragraphs(content, paragraphs, max_chars):
        if len(normalize_text(content[span_start:span_end])) <= max_chars:
            yield span_start, span_end
            continue
        # A single oversized paragraph falls back to fixed windows
        piece = content[span_start:span_end]
        for window_start, window_end in iter_windows(piece, max_chars=max_chars):
            yield span_start + window_start, span_start + window_end


def _group_paragraphs(content: str, paragraphs: List[Span], max_chars: int) -> Iterator[Span]:
    group_start: int | None = None
    group_end = 0
    size = 0
    for para_start, para_end in paragraphs:
        para_size = len(normalize_text(content[para_start:para_end]))
        if group_start is not None and size + 1 + para_size > max_chars:
            yield group_start, group_end
            group_start, size = None, 0
        if group_start is None:
            group_start, size = para_start, para_size
        else:
            size += 1 + para_size
        group_end = para_end
    if group_start is not None:
        yield group_start, group_end


def chunk_document(document: Document, *, max_chars: int = DEFAULT_CHUNK_CHARS) -> List[Chunk]:
    """Split a document into chunks that partition its content.

    Joining ``chunk.content`` of the result in order gives back
    ``document.content``. Empty documents produce no chunks.
    """
    content = document.content
    if not content.strip():
        return []

    chunks: List[Chunk] = []
    for start, end, heading in _sections(content):
        for span_start, span_end in _split_section(content, start, end, max_chars):
            piece = content[span_start:span_end]
            chunks.append(
                Chunk(
                    document_path=document.path,
                    index=len(chunks),
                    heading=heading,
                    text=normalize_text(piece),
                    content=piece,
                    offset=span_start,
                )
            )
    return chunks
