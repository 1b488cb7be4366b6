"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

CONTENT_DIR_ENV = "DOCQUERY_CONTENT_DIR"
DEFAULT_EXTENSIONS = (".md", ".mdx", ".markdown", ".txt")


def _get_default_content_dir() -> Path:
    """Get the default content directory from the environment or the working tree."""
    override = os.environ.get(CONTENT_DIR_ENV)
    if override:
        return Path(override)

    # Layout of the site template this corpus usually ships with
    site_content = Path("app/docs/content")
    if site_content.exists():
        return site_content

    return Path("docs/content")


@dataclass(slots=True)
class AppConfig:
    content_dir: Path | None = None
    export_dir: Path = Path("public")
    chunk_chars: int = 1500
    excerpt_chars: int = 300
    search_limit: int = 10
    source_limit: int = 5
    suggestion_limit: int = 3
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS

    def __post_init__(self) -> None:
        if self.content_dir is None:
            self.content_dir = _get_default_content_dir()

    def resolve_content_dir(self, base_dir: Path | None = None) -> Path:
        if self.content_dir is None:
            self.content_dir = _get_default_content_dir()
        if Path(self.content_dir).is_absolute() or base_dir is None:
            return Path(self.content_dir)
        return base_dir / self.content_dir

    def resolve_export_dir(self, base_dir: Path | None = None) -> Path:
        if Path(self.export_dir).is_absolute() or base_dir is None:
            return Path(self.export_dir)
        return base_dir / self.export_dir
