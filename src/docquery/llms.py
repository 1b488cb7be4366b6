"""Generation of ``llms.txt`` and ``llms-full.txt`` from an index."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Tuple

from docquery.index.storage import DocumentIndex
from docquery.ingestion.markdown_loader import first_paragraph, title_from_name

LOGGER = logging.getLogger(__name__)

LLMS_FILE = "llms.txt"
LLMS_FULL_FILE = "llms-full.txt"


def _doc_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/docs/{path}"


def _by_category(index: DocumentIndex) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for path, document in index.documents.items():
        grouped.setdefault(document.category, []).append(path)
    return grouped


def build_llms_txt(
    index: DocumentIndex,
    *,
    site_title: str,
    summary: str = "",
    base_url: str = "",
) -> str:
    """Link index of the documentation, one section per category."""
    lines = [f"# {site_title}", ""]
    if summary:
        lines += [f"> {summary}", ""]

    for category, paths in _by_category(index).items():
        lines += [f"## {title_from_name(category)}", ""]
        for path in paths:
            document = index.documents[path]
            entry = f"- [{document.title}]({_doc_url(base_url, path)})"
            description = first_paragraph(document.content)
            if description:
                entry += f": {description}"
            lines.append(entry)
        lines.append("")
    return "\n".join(lines)


def build_llms_full_txt(index: DocumentIndex, *, site_title: str, base_url: str = "") -> str:
    """Every document's full text under its title and URL."""
    parts = [
        f"# {site_title} - Full Content",
        "",
        "> Complete documentation content in a single, structured file.",
        "",
    ]
    for category, paths in _by_category(index).items():
        parts += [f"## {title_from_name(category)}", ""]
        for path in paths:
            document = index.documents[path]
            parts += [
                f"### {document.title}",
                "",
                f"URL: {_doc_url(base_url, path)}",
                "",
                document.content.strip(),
                "",
            ]
    return "\n".join(parts)


def write_llms_files(
    index: DocumentIndex,
    export_dir: Path,
    *,
    site_title: str,
    summary: str = "",
    base_url: str = "",
) -> Tuple[Path, Path]:
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)
    llms_path = export_dir / LLMS_FILE
    full_path = export_dir / LLMS_FULL_FILE
    llms_path.write_text(
        build_llms_txt(index, site_title=site_title, summary=summary, base_url=base_url),
        encoding="utf-8",
    )
    full_path.write_text(
        build_llms_full_txt(index, site_title=site_title, base_url=base_url), encoding="utf-8"
    )
    LOGGER.info("Wrote %s and %s", llms_path, full_path)
    return llms_path, full_path
