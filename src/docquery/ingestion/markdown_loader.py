"""Markdown loading utilities.

Reads one content file into a :class:`~docquery.models.Document` and offers
the heading scanner shared with the chunker.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, NamedTuple

from docquery.models import Document
from docquery.utils.files import document_path_for
from docquery.utils.text import collapse_whitespace, strip_markdown

LOGGER = logging.getLogger(__name__)

HEADING_LINE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)[ \t#]*$")
FENCE_LINE = re.compile(r"^ {0,3}(```|~~~)")


class Heading(NamedTuple):
    offset: int
    level: int
    text: str


def iter_headings(content: str, *, max_level: int = 6) -> Iterator[Heading]:
    """Yield ATX headings outside fenced code blocks, with their line offsets."""
    fence: str | None = None
    offset = 0
    for line in content.splitlines(keepends=True):
        fence_match = FENCE_LINE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
        elif fence is None:
            match = HEADING_LINE.match(line.rstrip("\r\n"))
            if match and len(match.group(1)) <= max_level:
                text = collapse_whitespace(strip_markdown(match.group(2)))
                if text:
                    yield Heading(offset, len(match.group(1)), text)
        offset += len(line)


def title_from_name(path: str) -> str:
    """Fallback title built from the last path segment."""
    name = path.rsplit("/", 1)[-1].replace("-", " ").replace("_", " ").strip()
    return name[:1].upper() + name[1:]


def extract_title(content: str, fallback: str) -> str:
    for heading in iter_headings(content, max_level=1):
        return heading.text
    return fallback


def first_paragraph(content: str) -> str:
    """First non-heading paragraph line after the title, used as a description."""
    fence = False
    for line in content.splitlines():
        stripped = line.strip()
        if FENCE_LINE.match(line):
            fence = not fence
            continue
        if fence or not stripped or stripped.startswith("#"):
            continue
        return collapse_whitespace(strip_markdown(stripped))
    return ""


def read_text(file_path: Path) -> str:
    """Read a UTF-8 file, dropping a BOM and normalizing line endings."""
    text = file_path.read_text(encoding="utf-8-sig")
    return text.replace("\r\n", "\n").replace("\r", "\n")


def build_document(path: str, content: str) -> Document:
    """Create a document from its identity and raw text."""
    empty = not content.strip()
    if empty:
        LOGGER.debug("Empty document: %s", path)
    return Document(
        path=path,
        title=extract_title(content, title_from_name(path)),
        content=content,
        category=path.split("/", 1)[0],
        low_quality=empty,
    )


def load_document(file_path: Path, root: Path) -> Document:
    """Load a content file; raises ``OSError`` or ``UnicodeDecodeError`` on failure."""
    path = document_path_for(file_path, root)
    LOGGER.debug("Loading %s from %s", path, file_path)
    return build_document(path, read_text(file_path))
