"""Command line interface for DocServe."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docserve.config import (
    DEFAULT_BRANCH,
    DEFAULT_DOCS_PATH,
    DEFAULT_GITHUB_OWNER,
    DEFAULT_GITHUB_REPO,
    DocumentSourceConfig,
    SourceKind,
)
from docserve.errors import InvalidArgumentError
from docserve.index.search import DEFAULT_RELATED_RESULTS, QueryEngine, build_engine
from docserve.models import DocumentMetadata

# Logs go to stderr; stdout stays free for the MCP stdio transport.
console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="DocServe - serve markdown code guidelines over MCP")

SourceOption = typer.Option(SourceKind.LOCAL.value, "--source", help="Document source: local or github")
BasePathOption = typer.Option(None, "--base-path", help="Local docs folder")
OwnerOption = typer.Option(DEFAULT_GITHUB_OWNER, "--owner", help="GitHub repository owner")
RepoOption = typer.Option(DEFAULT_GITHUB_REPO, "--repo", help="GitHub repository name")
BranchOption = typer.Option(DEFAULT_BRANCH, "--branch", help="GitHub branch")
DocsPathOption = typer.Option(DEFAULT_DOCS_PATH, "--docs-path", help="Docs folder inside the repository")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    source: str,
    base_path: Optional[Path],
    owner: str,
    repo: str,
    branch: str,
    docs_path: str,
) -> DocumentSourceConfig:
    try:
        env_config = DocumentSourceConfig.from_env()
        kind = SourceKind.parse(source)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return DocumentSourceConfig(
        kind=kind,
        base_path=base_path if base_path is not None else env_config.base_path,
        github_owner=owner,
        github_repo=repo,
        github_branch=branch,
        docs_path=docs_path,
        github_token=env_config.github_token,
        timeout=env_config.timeout,
    )


def _engine(
    source: str,
    base_path: Optional[Path],
    owner: str,
    repo: str,
    branch: str,
    docs_path: str,
) -> QueryEngine:
    config = _build_config(source, base_path, owner, repo, branch, docs_path)
    err_console.print(f"Using documentation from [bold]{config.describe()}[/bold]")
    return build_engine(config)


def _documents_table(docs: list[DocumentMetadata]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Tags")
    for doc in docs:
        table.add_row(doc.id, escape(doc.title), doc.category.value, escape(", ".join(doc.tags)))
    return table


@app.command()
def serve(
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """Run the MCP server over stdio."""
    from docserve.server.mcp_app import run_stdio

    _setup_logging(verbose)
    run_stdio(_engine(source, base_path, owner, repo, branch, docs_path))


@app.command(name="list")
def list_documents(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only this category"),
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """List indexed documents."""
    _setup_logging(verbose)
    engine = _engine(source, base_path, owner, repo, branch, docs_path)
    try:
        docs = engine.by_category(category) if category else engine.list_all()
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not docs:
        console.print("[yellow]No documents found.[/yellow]")
        return
    console.print(_documents_table(docs))


@app.command()
def show(
    id_or_path: str = typer.Argument(..., help="Document ID or path"),
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print the markdown content of a document."""
    _setup_logging(verbose)
    engine = _engine(source, base_path, owner, repo, branch, docs_path)
    try:
        content = engine.fetch_content(id_or_path)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if content is None:
        console.print(f"[yellow]Document '{escape(id_or_path)}' not found.[/yellow]")
        raise typer.Exit(code=1)
    console.print(content.content, markup=False, highlight=False)


@app.command()
def search(
    term: str = typer.Argument(..., help="Search term"),
    limit: int = typer.Option(10, help="Number of results to display"),
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """Full-text search with relevance scoring."""
    _setup_logging(verbose)
    engine = _engine(source, base_path, owner, repo, branch, docs_path)
    try:
        results = engine.search(term)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Matches")
    table.add_column("Document")
    table.add_column("Excerpt")
    for result in results[:limit]:
        excerpt = result.excerpts[0] if result.excerpts else ""
        table.add_row(
            str(result.relevance_score),
            str(result.match_count),
            result.document.id,
            escape(excerpt[:180]),
        )
    console.print(table)


@app.command()
def related(
    doc_id: str = typer.Argument(..., help="Document ID"),
    max_results: int = typer.Option(DEFAULT_RELATED_RESULTS, "--max-results", "-n", help="1-20"),
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show documents related to DOC_ID."""
    _setup_logging(verbose)
    engine = _engine(source, base_path, owner, repo, branch, docs_path)
    try:
        docs = engine.related(doc_id, max_results)
    except InvalidArgumentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not docs:
        console.print("[yellow]No related documents found.[/yellow]")
        return
    console.print(_documents_table(docs))


@app.command()
def tags(
    source: str = SourceOption,
    base_path: Optional[Path] = BasePathOption,
    owner: str = OwnerOption,
    repo: str = RepoOption,
    branch: str = BranchOption,
    docs_path: str = DocsPathOption,
    verbose: bool = VerboseOption,
) -> None:
    """List every tag with its document count."""
    _setup_logging(verbose)
    engine = _engine(source, base_path, owner, repo, branch, docs_path)
    counts = engine.all_tags()
    if not counts:
        console.print("[yellow]No tags found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tag")
    table.add_column("Documents")
    for tag, count in sorted(counts.items(), key=lambda item: (-item[1], item[0].lower())):
        table.add_row(escape(tag), str(count))
    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    verbose: bool = VerboseOption,
) -> None:
    """Start the HTTP interface (configured through DOCSERVE_* variables)."""
    import uvicorn

    from docserve.web.app import app as web_app

    _setup_logging(verbose)
    config = DocumentSourceConfig.from_env()
    console.print(f"Starting web interface on http://{host}:{port} ({config.describe()})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="debug" if verbose else "info",
    )


if __name__ == "__main__":  # pragma: no cover
    app()
