"""Build-time indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from docquery.config import DEFAULT_EXTENSIONS
from docquery.errors import CorpusUnreadableError
from docquery.index.chunker import DEFAULT_CHUNK_CHARS
from docquery.index.storage import DocumentIndex
from docquery.ingestion.markdown_loader import load_document
from docquery.models import Diagnostic, Document
from docquery.utils.files import document_path_for, iter_content_paths

LOGGER = logging.getLogger(__name__)

UNREADABLE_KINDS = ("corpus-unreadable", "file-unreadable")


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    empty: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "indexed":
            self.indexed += 1
        elif status == "empty":
            self.empty += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)

    def record(self, path: str, kind: str, message: str) -> None:
        LOGGER.warning("%s: %s (%s)", kind, path, message)
        self.diagnostics.append(Diagnostic(path=path, kind=kind, message=message))


class Indexer:
    """Walks a content tree and builds a :class:`DocumentIndex`."""

    def __init__(
        self,
        root: Path,
        *,
        chunk_chars: int = DEFAULT_CHUNK_CHARS,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        self.root = Path(root)
        self.chunk_chars = chunk_chars
        self.extensions = tuple(extensions)
        self.stats = IndexStats()

    def build(self, *, strict: bool = False) -> DocumentIndex:
        """Index every content file under the root.

        Unreadable directories and files are skipped and recorded as
        diagnostics; the rest of the corpus still indexes. With ``strict``
        a build that hit any read failure raises
        :class:`CorpusUnreadableError` instead of returning.
        """
        self.stats = IndexStats()
        documents = self._load_documents()

        if not documents and not self.stats.diagnostics:
            LOGGER.warning("No documentation files found under %s", self.root)

        problems = [f"{d.kind}: {d.path}" for d in self.stats.diagnostics if d.kind in UNREADABLE_KINDS]
        if strict and problems:
            raise CorpusUnreadableError(str(self.root), problems)

        index = DocumentIndex.from_documents(
            documents,
            chunk_chars=self.chunk_chars,
            diagnostics=self.stats.diagnostics,
        )
        LOGGER.info(
            "Indexed %d documents (%d chunks) from %s", len(index), index.chunk_count, self.root
        )
        return index

    def _on_walk_error(self, path: Path, exc: OSError) -> None:
        self.stats.failed += 1
        self.stats.record(str(path), "corpus-unreadable", str(exc))

    def _load_documents(self) -> List[Document]:
        documents: List[Document] = []
        seen: set[str] = set()

        for file_path in iter_content_paths(
            self.root, extensions=self.extensions, on_error=self._on_walk_error
        ):
            doc_path = document_path_for(file_path, self.root)
            if doc_path in seen:
                self.stats.increment("skipped", file_path)
                self.stats.record(doc_path, "duplicate-path", f"{file_path.name} ignored")
                continue

            try:
                LOGGER.debug("Processing: %s", file_path)
                document = load_document(file_path, self.root)
            except (OSError, UnicodeDecodeError) as exc:
                self.stats.increment("failed", file_path)
                self.stats.record(doc_path, "file-unreadable", str(exc))
                continue

            seen.add(doc_path)
            documents.append(document)
            if document.low_quality:
                self.stats.increment("empty", file_path)
                self.stats.record(doc_path, "empty-file", "indexed without content")
            else:
                self.stats.increment("indexed", file_path)

        return documents


def build_index(
    root: Path,
    *,
    chunk_chars: int = DEFAULT_CHUNK_CHARS,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    strict: bool = False,
) -> DocumentIndex:
    return Indexer(root, chunk_chars=chunk_chars, extensions=extensions).build(strict=strict)
