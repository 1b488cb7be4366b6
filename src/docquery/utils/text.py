"""Text helpers: normalization, tokenization and excerpt windows."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Iterator, List, Sequence, Tuple

MARKDOWN_MARKERS = re.compile(r"[#*`]")
WHITESPACE = re.compile(r"\s+")
TOKEN = re.compile(r"\w+(?:-\w+)*")
PATH_SEPARATORS = re.compile(r"[/\-_.\s]+")

ELLIPSIS = "..."

STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "does",
        "for", "from", "how", "i", "in", "is", "it", "me", "my", "of", "on",
        "or", "s", "show", "t", "that", "the", "this", "to", "what", "when",
        "where", "which", "who", "why", "with", "you", "your",
    }
)


def strip_markdown(text: str) -> str:
    """Drop heading, emphasis and code markers."""
    return MARKDOWN_MARKERS.sub("", text)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """Matching form of a text: markers stripped, case-folded, whitespace collapsed."""
    return collapse_whitespace(strip_markdown(text)).casefold()


def tokenize(query: str, *, stopwords: Iterable[str] = STOPWORDS) -> List[str]:
    """Split a query into distinct lowercase terms, in order of first appearance.

    Hyphenated words stay whole so ``real-time`` is one term. Only stopwords
    are dropped; single letters such as ``c`` or ``r`` are kept. The contraction
    tails ``s`` and ``t`` are stopwords.
    """
    skip = set(stopwords)
    terms: List[str] = []
    for term in TOKEN.findall(normalize_text(query)):
        if term in skip or term in terms:
            continue
        terms.append(term)
    return terms


def path_tokens(path: str) -> List[str]:
    """Lowercase words of a document path, splitting on ``/``, ``-`` and ``_``."""
    return [part for part in PATH_SEPARATORS.split(path.lower()) if part]


@lru_cache(maxsize=1024)
def term_pattern(term: str) -> re.Pattern[str]:
    """Case-insensitive whole-word pattern for a term."""
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def contains_term(term: str, text: str) -> bool:
    return term_pattern(term).search(text) is not None


def count_term(term: str, text: str) -> int:
    return sum(1 for _ in term_pattern(term).finditer(text))


def truncate_at_word(text: str, max_chars: int) -> str:
    """Shorten text to at most ``max_chars`` characters, cutting at a word boundary."""
    text = text.strip()
    if len(text) <= max_chars:
        return text

    budget = max(max_chars - len(ELLIPSIS), 1)
    cut = text[:budget]
    if not text[budget].isspace():
        boundary = cut.rfind(" ")
        if boundary > 0:
            cut = cut[:boundary]
    return cut.rstrip(" ,;:") + ELLIPSIS


def _fold_with_offsets(text: str) -> Tuple[str, List[int]]:
    """Case-folded text plus, for each folded character, its index in ``text``."""
    pieces: List[str] = []
    offsets: List[int] = []
    for position, char in enumerate(text):
        folded = char.casefold()
        pieces.append(folded)
        offsets.extend([position] * len(folded))
    return "".join(pieces), offsets


def excerpt_window(
    text: str,
    terms: Sequence[str],
    *,
    max_chars: int = 300,
    lead: int = 100,
) -> str:
    """Readable window of ``text`` around the earliest occurrence of any term.

    Markdown markers are removed but case is preserved.
    """
    display = collapse_whitespace(strip_markdown(text))
    if not display:
        return ""

    folded, offsets = _fold_with_offsets(display)
    matches = (term_pattern(term).search(folded) for term in terms)
    positions = [offsets[match.start()] for match in matches if match]
    start = max(0, min(positions) - lead) if positions else 0
    if start > 0:
        start = display.rfind(" ", 0, start) + 1

    if start == 0:
        return truncate_at_word(display, max_chars)
    return ELLIPSIS + truncate_at_word(display[start:], max_chars - len(ELLIPSIS))


def iter_windows(text: str, *, max_chars: int = 1500) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` spans covering ``text`` in pieces of at most ``max_chars``.

    Spans are contiguous and break on whitespace when one is available.
    """
    if not text:
        return

    start = 0
    length = len(text)
    while start < length:
        end = min(start + max_chars, length)
        if end < length:
            boundary = max(text.rfind(" ", start, end), text.rfind("\n", start, end))
            if boundary > start:
                end = boundary + 1
        yield start, end
        start = end
