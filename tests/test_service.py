"""Tests for the documentation query service."""

from __future__ import annotations

from pathlib import Path

import pytest

from docquery.answer.synthesizer import EMPTY_QUERY_ANSWER, NOT_FOUND_ANSWER
from docquery.config import AppConfig
from docquery.errors import EmptyQueryError, PathNotFoundError
from docquery.index.indexer import Indexer
from docquery.index.storage import DocumentIndex
from docquery.ingestion.markdown_loader import build_document
from docquery.service import DocumentationQuery, DocumentationService

from conftest import CORPUS, EXPECTED_ORDER, write_corpus


class TestContent:
    """Test content retrieval."""

    def test_get_content(self, service: DocumentationService) -> None:
        """Should return the raw document text."""
        text = service.get_content("getting-started/introduction")

        assert text == CORPUS["getting-started/introduction.md"]

    def test_empty_document_is_retrievable(self, service: DocumentationService) -> None:
        """Should index empty files with empty content."""
        assert service.get_content("user-guide/empty") == ""

    def test_missing_path_suggests(self, service: DocumentationService) -> None:
        """Should raise with suggestions for an unknown path."""
        with pytest.raises(PathNotFoundError) as excinfo:
            service.get_content("deployment/cloudflare")

        assert excinfo.value.path == "deployment/cloudflare"
        assert excinfo.value.suggestions[0] == "deployment/platforms/cloudflare"
        assert str(excinfo.value) == "Documentation path 'deployment/cloudflare' not found"

    def test_path_exists(self, service: DocumentationService) -> None:
        """Should report known paths only."""
        assert service.path_exists("deployment/overview")
        assert not service.path_exists("deployment")

    def test_list_paths(self, service: DocumentationService) -> None:
        """Should list paths in traversal order."""
        assert service.list_paths() == EXPECTED_ORDER

    def test_related_paths(self, service: DocumentationService) -> None:
        """Should list other pages of the same category."""
        assert service.related_paths("deployment/platforms/cloudflare") == [
            "deployment/platforms/vercel",
            "deployment/overview",
        ]


class TestSearchAndAsk:
    """Test search and ask operations."""

    def test_search_scenario(self, service: DocumentationService) -> None:
        """Should put the most relevant page first with a matching excerpt."""
        results = service.search("cloudflare deployment")

        assert results[0].path == "deployment/platforms/cloudflare"
        assert "Cloudflare" in results[0].excerpt

    def test_search_deterministic(self, service: DocumentationService) -> None:
        """Should return identical results for identical queries."""
        first = [result.to_dict() for result in service.search("deployment site")]
        second = [result.to_dict() for result in service.search("deployment site")]

        assert first == second

    def test_search_limit_is_a_prefix(self, service: DocumentationService) -> None:
        """Should return the head of the uncapped ranking."""
        everything = service.search("deployment", limit=50)
        capped = service.search("deployment", limit=1)

        assert [r.path for r in capped] == [r.path for r in everything[:1]]

    def test_search_no_match(self, service: DocumentationService) -> None:
        """Should return no results for unknown terms."""
        assert service.search("xyzzy-nonexistent-term") == []

    def test_search_empty_query(self, service: DocumentationService) -> None:
        """Should raise on a blank query."""
        with pytest.raises(EmptyQueryError):
            service.search("   ")

    def test_ask_no_match(self, service: DocumentationService) -> None:
        """Should answer with the not-found text and no sources."""
        response = service.ask("xyzzy-nonexistent-term")

        assert response.answer == NOT_FOUND_ANSWER
        assert response.sources == []

    def test_ask_empty_query(self, service: DocumentationService) -> None:
        """Should answer a blank question without raising."""
        response = service.ask("  ")

        assert response.answer == EMPTY_QUERY_ANSWER
        assert response.sources == []

    def test_ask_empty_index(self) -> None:
        """Should answer not-found when the corpus is empty."""
        response = DocumentationService(DocumentIndex.empty()).ask("anything")

        assert response.answer == NOT_FOUND_ANSWER

    def test_ask_source_limit(self, corpus_dir: Path, index: DocumentIndex) -> None:
        """Should honour the configured source limit."""
        config = AppConfig(content_dir=corpus_dir, source_limit=1)
        response = DocumentationService(index, config=config).ask("deployment")

        assert len(response.sources) == 1


class TestValidateAndSummaries:
    """Test validation, stats and outline."""

    def test_validate_existing(self, service: DocumentationService) -> None:
        """Should accept an indexed path without suggestions."""
        result = service.validate_path("getting-started/introduction")

        assert result.exists
        assert result.suggestions == []

    def test_validate_missing(self, service: DocumentationService) -> None:
        """Should suggest the closest known paths."""
        result = service.validate_path("getting-started/intro")

        assert not result.exists
        assert result.suggestions[0] == "getting-started/introduction"
        assert len(result.suggestions) <= 3

    def test_stats(self, service: DocumentationService) -> None:
        """Should summarise the corpus."""
        stats = service.stats()

        assert stats.total_documents == 7
        assert stats.total_characters == sum(len(text) for text in CORPUS.values())
        assert stats.low_quality_documents == 1
        assert stats.categories == ["deployment", "getting-started", "user-guide"]
        assert stats.total_chunks >= 6
        assert stats.diagnostics == 1

    def test_outline(self, service: DocumentationService) -> None:
        """Should group paths by category."""
        outline = service.outline()

        assert outline["total_files"] == 7
        assert [group["category"] for group in outline["structure"]] == [
            "deployment",
            "getting-started",
            "user-guide",
        ]
        assert [group["count"] for group in outline["structure"]] == [3, 2, 2]


class TestHandle:
    """Test request dispatch."""

    def test_search_request(self, service: DocumentationService) -> None:
        """Should wrap search results with the total count."""
        envelope = service.handle({"search": "deployment", "limit": 1})

        assert envelope.success
        assert envelope.operation == "search"
        assert len(envelope.data["results"]) == 1
        assert envelope.data["total_results"] == len(service.search("deployment", limit=50))

    def test_content_request(self, service: DocumentationService) -> None:
        """Should return the document with related paths."""
        envelope = service.handle({"content": "deployment/overview"})

        assert envelope.success
        assert envelope.data["title"] == "Deployment Overview"
        assert envelope.data["length"] == len(CORPUS["deployment/overview.md"])
        assert "deployment/platforms/cloudflare" in envelope.data["related_paths"]

    def test_missing_content_request(self, service: DocumentationService) -> None:
        """Should fail with suggestions instead of raising."""
        envelope = service.handle({"content": "deployment/cloudflare"})

        assert not envelope.success
        assert envelope.operation == "content"
        assert envelope.suggestions[0] == "deployment/platforms/cloudflare"

    def test_empty_search_request(self, service: DocumentationService) -> None:
        """Should report an empty query as a failure."""
        envelope = service.handle({"search": " "})

        assert not envelope.success
        assert envelope.error == "Empty query"

    @pytest.mark.parametrize(
        ("request_data", "operation"),
        [
            ({"ask": "What is the chatbot?"}, "ask"),
            ({"paths": True}, "paths"),
            ({"paths": None}, "paths"),
            ({"stats": None}, "stats"),
            ({"stats": True}, "stats"),
            ({"outline": True}, "outline"),
            ({"validate": "getting-started/intro"}, "validate"),
        ],
    )
    def test_other_operations(
        self, service: DocumentationService, request_data: dict, operation: str
    ) -> None:
        """Should dispatch each operation."""
        envelope = service.handle(request_data)

        assert envelope.success
        assert envelope.operation == operation
        assert envelope.data

    @pytest.mark.parametrize(
        "request_data",
        [
            {},
            {"paths": False},
            {"search": "a", "ask": "b"},
            {"unknown": 1},
            {"search": "a", "limit": 0},
            {"ask": "What is the chatbot?", "limit": 3},
            {"paths": True, "limit": 2},
        ],
    )
    def test_invalid_requests(self, service: DocumentationService, request_data: dict) -> None:
        """Should fail without raising for malformed requests."""
        envelope = service.handle(request_data)

        assert not envelope.success
        assert envelope.error

    def test_model_request(self, service: DocumentationService) -> None:
        """Should accept an already validated request."""
        request = DocumentationQuery(validate_path="deployment/overview")

        assert request.operation == "validate"
        assert service.handle(request).data["exists"] is True


class TestSwapIndex:
    """Test replacing the active index."""

    def test_swap(self, service: DocumentationService) -> None:
        """Should answer from the new index once swapped."""
        replacement = DocumentIndex.from_documents(
            [build_document("guides/theming", "# Theming\n\nCustomize the palette.\n")]
        )

        previous = service.swap_index(replacement)

        assert len(previous) == 7
        assert service.list_paths() == ["guides/theming"]
        assert service.search("palette")[0].path == "guides/theming"
        assert service.search("cloudflare") == []

    def test_rebuild_picks_up_new_files(self, corpus_dir: Path, service: DocumentationService) -> None:
        """Should see new content only after a rebuild is swapped in."""
        write_corpus(corpus_dir, {"guides/theming.md": "# Theming\n\nCustomize the palette.\n"})

        assert not service.path_exists("guides/theming")
        service.swap_index(Indexer(corpus_dir).build())
        assert service.path_exists("guides/theming")
