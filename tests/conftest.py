"""Shared fixtures: a small documentation tree and the index built from it."""

from __future__ import annotations

from pathlib import Path

import pytest

from docquery.config import AppConfig
from docquery.index.indexer import Indexer
from docquery.index.storage import DocumentIndex
from docquery.service import DocumentationService

CORPUS = {
    "getting-started/introduction.md": (
        "# Introduction\n\n"
        "Welcome to the documentation site template. It ships with themes and search.\n\n"
        "## Features\n\n"
        "- Dark and light themes\n"
        "- Command palette\n"
    ),
    "getting-started/quick-start.md": (
        "# Quick Start\n\n"
        "Install dependencies and run the development server.\n\n"
        "## Installing packages\n\n"
        "Run `npm install` to install packages.\n"
    ),
    "deployment/overview.md": (
        "# Deployment Overview\n\n"
        "The site exports static files that can be hosted anywhere.\n"
    ),
    "deployment/platforms/cloudflare.md": (
        "# Cloudflare\n\n"
        "Cloudflare Pages is the recommended hosting platform.\n\n"
        "## Setup\n\n"
        "Connect your repository and set the build command.\n"
    ),
    "deployment/platforms/vercel.md": (
        "# Vercel\n\n"
        "Vercel deploys every push automatically.\n"
    ),
    "user-guide/chatbot.md": (
        "# Chatbot\n\n"
        "The chatbot is an assistant that searches the documentation and answers "
        "questions with sources.\n\n"
        "## Example questions\n\n"
        "Try asking how to deploy the site.\n"
    ),
    "user-guide/empty.md": "",
}

EXPECTED_ORDER = [
    "deployment/platforms/cloudflare",
    "deployment/platforms/vercel",
    "deployment/overview",
    "getting-started/introduction",
    "getting-started/quick-start",
    "user-guide/chatbot",
    "user-guide/empty",
]


def write_corpus(root: Path, files: dict[str, str]) -> Path:
    for relative, text in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    return write_corpus(tmp_path / "content", CORPUS)


@pytest.fixture
def index(corpus_dir: Path) -> DocumentIndex:
    return Indexer(corpus_dir).build()


@pytest.fixture
def service(corpus_dir: Path, index: DocumentIndex) -> DocumentationService:
    return DocumentationService(index, config=AppConfig(content_dir=corpus_dir))
