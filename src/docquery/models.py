"""Core docquery data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List


@dataclass(frozen=True, slots=True)
class Document:
    """A single documentation page identified by its slash-delimited path."""

    path: str
    title: str
    content: str
    category: str
    low_quality: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass(frozen=True, slots=True)
class Chunk:
    """Section of a document.

    ``content`` is the original slice used for excerpts, ``text`` its
    normalized form used for matching.
    """

    document_path: str
    index: int
    heading: str
    text: str
    content: str
    offset: int


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Build-time problem recorded for the operator."""

    path: str
    kind: str
    message: str


@dataclass(slots=True)
class SearchResult:
    path: str
    title: str
    excerpt: str
    relevance_score: float
    category: str
    heading: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Source:
    """Citation attached to an answer."""

    title: str
    path: str
    excerpt: str
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class QueryResponse:
    answer: str
    sources: List[Source] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [source.to_dict() for source in self.sources],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(slots=True)
class PathValidation:
    path: str
    exists: bool
    suggestions: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.exists:
            return f"Path '{self.path}' is valid and exists"
        hint = "Similar paths available." if self.suggestions else "No similar paths found."
        return f"Path '{self.path}' does not exist. {hint}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "exists": self.exists,
            "suggestions": list(self.suggestions),
            "message": self.message,
        }


@dataclass(slots=True)
class CorpusStats:
    total_documents: int
    total_characters: int
    total_chunks: int
    low_quality_documents: int
    categories: List[str]
    diagnostics: int
    generated: datetime

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["generated"] = self.generated.isoformat()
        return data
