"""In-memory document index and its static JSON export."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple

from docquery.index.chunker import DEFAULT_CHUNK_CHARS, chunk_document
from docquery.ingestion.markdown_loader import build_document
from docquery.models import Chunk, Diagnostic, Document

LOGGER = logging.getLogger(__name__)

CONTENT_FILE = "docs-content.json"
INDEX_FILE = "docs-index.json"


@dataclass(frozen=True, eq=False)
class DocumentIndex:
    """Read-only corpus: documents by path plus their chunks.

    Built once, never mutated. A content change means building a new index.
    """

    documents: Mapping[str, Document]
    chunks: Mapping[str, Tuple[Chunk, ...]]
    built_at: datetime
    diagnostics: Tuple[Diagnostic, ...] = field(default=())

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[Document],
        *,
        chunk_chars: int = DEFAULT_CHUNK_CHARS,
        built_at: datetime | None = None,
        diagnostics: Sequence[Diagnostic] = (),
    ) -> "DocumentIndex":
        by_path: Dict[str, Document] = {}
        chunks: Dict[str, Tuple[Chunk, ...]] = {}
        for document in documents:
            by_path[document.path] = document
            chunks[document.path] = tuple(chunk_document(document, max_chars=chunk_chars))
        return cls(
            documents=MappingProxyType(by_path),
            chunks=MappingProxyType(chunks),
            built_at=built_at or datetime.now(timezone.utc),
            diagnostics=tuple(diagnostics),
        )

    @classmethod
    def empty(cls) -> "DocumentIndex":
        return cls.from_documents(())

    def __len__(self) -> int:
        return len(self.documents)

    def __contains__(self, path: object) -> bool:
        return path in self.documents

    def paths(self) -> List[str]:
        return list(self.documents)

    def get(self, path: str) -> Document | None:
        return self.documents.get(path)

    def iter_chunks(self) -> Iterator[Tuple[Document, Chunk]]:
        for path, document in self.documents.items():
            for chunk in self.chunks.get(path, ()):
                yield document, chunk

    @property
    def chunk_count(self) -> int:
        return sum(len(chunks) for chunks in self.chunks.values())

    @property
    def total_characters(self) -> int:
        return sum(len(document.content) for document in self.documents.values())

    def content_blob(self) -> str:
        """Whole corpus as one text, documents separated by blank lines."""
        return "\n\n".join(doc.content for doc in self.documents.values() if not doc.low_quality)


def _generated_stamp(index: DocumentIndex) -> str:
    return index.built_at.isoformat()


def write_static_export(index: DocumentIndex, export_dir: Path) -> Tuple[Path, Path]:
    """Write ``docs-content.json`` and ``docs-index.json`` for static hosting."""
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)

    generated = _generated_stamp(index)
    paths = index.paths()
    content_payload: Dict[str, Any] = {
        "generated": generated,
        "content": {path: index.documents[path].content for path in paths},
        "paths": paths,
        "count": len(paths),
    }
    index_payload = {"generated": generated, "paths": paths, "count": len(paths)}

    content_path = export_dir / CONTENT_FILE
    index_path = export_dir / INDEX_FILE
    content_path.write_text(json.dumps(content_payload, indent=2, ensure_ascii=False), encoding="utf-8")
    index_path.write_text(json.dumps(index_payload, indent=2, ensure_ascii=False), encoding="utf-8")
    LOGGER.info("Exported %d documents to %s", len(paths), export_dir)
    return content_path, index_path


def load_static_export(path: Path, *, chunk_chars: int = DEFAULT_CHUNK_CHARS) -> DocumentIndex:
    """Rebuild an index from ``docs-content.json`` (or the directory holding it)."""
    path = Path(path)
    if path.is_dir():
        path = path / CONTENT_FILE

    payload = json.loads(path.read_text(encoding="utf-8"))
    content: Mapping[str, str] = payload.get("content") or {}
    ordered = payload.get("paths") or list(content)

    documents = [build_document(doc_path, content.get(doc_path, "")) for doc_path in ordered]
    generated = payload.get("generated")
    built_at = datetime.fromisoformat(generated.replace("Z", "+00:00")) if generated else None
    return DocumentIndex.from_documents(documents, chunk_chars=chunk_chars, built_at=built_at)
