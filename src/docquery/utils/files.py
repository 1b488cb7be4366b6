"""Utility helpers for walking the content tree."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

ErrorHandler = Callable[[Path, OSError], None]


def iter_content_paths(
    root: Path,
    *,
    extensions: Iterable[str],
    on_error: Optional[ErrorHandler] = None,
) -> Iterator[Path]:
    """Yield content files under ``root`` depth-first.

    Within a directory, subdirectories are visited before files and both are
    taken in alphabetical order. Hidden entries are ignored. A directory that
    cannot be listed is reported to ``on_error`` and skipped.
    """
    suffixes = {ext.lower() for ext in extensions}
    try:
        entries = sorted(child for child in root.iterdir() if not child.name.startswith("."))
    except OSError as exc:
        if on_error is None:
            raise
        on_error(root, exc)
        return

    directories = [entry for entry in entries if entry.is_dir()]
    files = [entry for entry in entries if entry.is_file() and entry.suffix.lower() in suffixes]

    for directory in directories:
        yield from iter_content_paths(directory, extensions=suffixes, on_error=on_error)
    yield from files


def document_path_for(file_path: Path, root: Path) -> str:
    """Slash-delimited identity of a file: its relative directory plus stem."""
    relative = file_path.relative_to(root).with_suffix("")
    return "/".join(relative.parts)
