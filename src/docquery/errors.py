"""Exceptions raised by the indexing and query layers."""

from __future__ import annotations

from typing import Sequence


class CorpusUnreadableError(OSError):
    """Part of the content tree could not be read during a strict build."""

    def __init__(self, root: str, problems: Sequence[str]) -> None:
        self.root = root
        self.problems = list(problems)
        super().__init__(f"Corpus under {root} is incomplete: {len(self.problems)} problem(s)")


class PathNotFoundError(KeyError):
    """Requested document path is not in the index."""

    def __init__(self, path: str, suggestions: Sequence[str] = ()) -> None:
        self.path = path
        self.suggestions = list(suggestions)
        super().__init__(path)

    def __str__(self) -> str:
        return f"Documentation path '{self.path}' not found"


class EmptyQueryError(ValueError):
    """Query string is empty or whitespace only."""

    def __init__(self) -> None:
        super().__init__("Empty query")
