"""Command line interface for docquery."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from docquery.config import AppConfig
from docquery.errors import CorpusUnreadableError, EmptyQueryError, PathNotFoundError
from docquery.index.indexer import Indexer
from docquery.index.storage import DocumentIndex, load_static_export, write_static_export
from docquery.llms import write_llms_files
from docquery.service import DocumentationService
from docquery.web.app import app as web_app

console = Console()
app = typer.Typer(help="docquery - keyword search and answers over documentation")

CONTENT_HELP = "Documentation content directory"
EXPORT_HELP = "docs-content.json (or its directory) to load instead of indexing"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _config(content: Optional[Path]) -> AppConfig:
    return AppConfig(content_dir=content) if content is not None else AppConfig()


def _load_index(config: AppConfig, export: Optional[Path]) -> DocumentIndex:
    if export is not None:
        if not export.exists():
            raise typer.BadParameter(f"Export not found: {export}")
        return load_static_export(export, chunk_chars=config.chunk_chars)

    root = config.resolve_content_dir(Path.cwd())
    if not root.is_dir():
        raise typer.BadParameter(f"Content directory not found: {root}")
    return Indexer(root, chunk_chars=config.chunk_chars, extensions=config.extensions).build()


def _service(content: Optional[Path], export: Optional[Path]) -> DocumentationService:
    config = _config(content)
    return DocumentationService(_load_index(config, export), config=config)


@app.command()
def build(
    content: Path = typer.Argument(None, help=CONTENT_HELP),
    out: Path = typer.Option(AppConfig().export_dir, "--out", help="Export directory"),
    chunk_chars: int = typer.Option(AppConfig().chunk_chars, help="Chunk size in normalized characters"),
    strict: bool = typer.Option(False, "--strict", help="Fail when part of the corpus is unreadable"),
    llms: bool = typer.Option(False, "--llms", help="Also write llms.txt and llms-full.txt"),
    site_title: str = typer.Option("Documentation", help="Title used in llms.txt"),
    base_url: str = typer.Option("", help="Site URL prefix used in llms.txt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index the content tree and write the static export."""
    _setup_logging(verbose)
    config = _config(content)
    config.chunk_chars = chunk_chars
    root = config.resolve_content_dir(Path.cwd())

    console.print(f"Indexing [bold]{root}[/bold]...")
    indexer = Indexer(root, chunk_chars=config.chunk_chars, extensions=config.extensions)
    try:
        index = indexer.build(strict=strict)
    except CorpusUnreadableError as exc:
        console.print(f"[red]{exc}[/red]")
        for problem in exc.problems:
            console.print(f"  - {problem}")
        raise typer.Exit(code=1)

    stats = indexer.stats
    console.print(
        f"Indexed: {stats.indexed}, empty: {stats.empty}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )
    for diagnostic in stats.diagnostics:
        console.print(f"[yellow]{diagnostic.kind}[/yellow] {diagnostic.path}: {diagnostic.message}")

    if not len(index):
        console.print("[yellow]No documentation found.[/yellow]")
        return

    content_path, index_path = write_static_export(index, out)
    console.print(f"Wrote {content_path} and {index_path}")
    if llms:
        llms_path, full_path = write_llms_files(index, out, site_title=site_title, base_url=base_url)
        console.print(f"Wrote {llms_path} and {full_path}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
    top_k: int = typer.Option(10, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the documentation."""
    _setup_logging(verbose)
    service = _service(content, export)

    try:
        results = service.search(query, limit=top_k)
    except EmptyQueryError:
        raise typer.BadParameter("Empty query")

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Section")
    table.add_column("Excerpt")

    for result in results:
        table.add_row(
            f"{result.relevance_score:.2f}",
            result.path,
            escape(result.heading),
            escape(result.excerpt[:180]),
        )

    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to answer"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Answer a question with citations."""
    _setup_logging(verbose)
    response = _service(content, export).ask(question)

    console.print(Panel(escape(response.answer), title="Answer"))
    if not response.sources:
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Source")
    table.add_column("Path")
    for source in response.sources:
        table.add_row(f"{source.relevance_score:.2f}", escape(source.title), source.path)
    console.print(table)


@app.command()
def show(
    path: str = typer.Argument(..., help="Documentation path, e.g. getting-started/introduction"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """Print the content of one document."""
    service = _service(content, export)
    try:
        text = service.get_content(path)
    except PathNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        if exc.suggestions:
            console.print("Did you mean: " + ", ".join(exc.suggestions))
        raise typer.Exit(code=1)
    console.print(text, markup=False, highlight=False)


@app.command()
def validate(
    path: str = typer.Argument(..., help="Documentation path to check"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """Check whether a documentation path exists."""
    result = _service(content, export).validate_path(path)
    console.print(result.message)
    for suggestion in result.suggestions:
        console.print(f"  - {suggestion}")
    if not result.exists:
        raise typer.Exit(code=1)


@app.command()
def paths(
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """List every indexed path."""
    for path in _service(content, export).list_paths():
        console.print(path)


@app.command()
def stats(
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """Show corpus statistics."""
    summary = _service(content, export).stats()
    table = Table(show_header=False)
    table.add_row("Documents", str(summary.total_documents))
    table.add_row("Characters", str(summary.total_characters))
    table.add_row("Chunks", str(summary.total_chunks))
    table.add_row("Empty documents", str(summary.low_quality_documents))
    table.add_row("Categories", ", ".join(summary.categories))
    table.add_row("Generated", summary.generated.isoformat())
    console.print(table)


@app.command()
def outline(
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """Show paths grouped by category."""
    structure = _service(content, export).outline()["structure"]
    for group in structure:
        console.print(f"[bold]{group['category']}[/bold] ({group['count']})")
        for path in group["paths"]:
            console.print(f"  {path}")


@app.command()
def llms(
    out: Path = typer.Option(AppConfig().export_dir, "--out", help="Output directory"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
    site_title: str = typer.Option("Documentation", help="Title used in llms.txt"),
    summary: str = typer.Option("", help="One-line site summary"),
    base_url: str = typer.Option("", help="Site URL prefix for document links"),
) -> None:
    """Write llms.txt and llms-full.txt for the corpus."""
    index = _load_index(_config(content), export)
    llms_path, full_path = write_llms_files(
        index, out, site_title=site_title, summary=summary, base_url=base_url
    )
    console.print(f"Wrote {llms_path} and {full_path}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    content: Path = typer.Option(None, "--content", help=CONTENT_HELP),
    export: Path = typer.Option(None, "--export", help=EXPORT_HELP),
) -> None:
    """Start the HTTP query interface."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    web_app.state.service = _service(content, export)
    console.print(f"Starting web interface on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
