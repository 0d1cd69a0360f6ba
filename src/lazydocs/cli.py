"""Command line interface for lazydocs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.markdown import Markdown
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn
from rich.table import Table

from lazydocs.app import DocsApp
from lazydocs.config import AppConfig
from lazydocs.errors import LazydocsError
from lazydocs.models import format_slug
from lazydocs.remote.manifest import filter_manifest

console = Console()
app = typer.Typer(help="lazydocs - offline DevDocs documentation with full-text search")

POPULAR_DOCSETS = "javascript, go, python~3.12, ruby~3.3, react, vue~3, rails~8.0"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _open_app(data_dir: Optional[Path], verbose: bool) -> DocsApp:
    _setup_logging(verbose)
    config = AppConfig(data_dir=data_dir) if data_dir is not None else AppConfig()
    config.data_dir = config.resolve_data_dir(Path.cwd())
    return DocsApp(config)


def _fail(exc: LazydocsError) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


DataDirOption = typer.Option(None, "--data-dir", help="Directory holding the index and docsets")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command("list")
def list_installed(
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """List installed docsets."""
    with _open_app(data_dir, verbose) as docs:
        try:
            docsets = docs.list_installed_docsets()
        except LazydocsError as exc:
            _fail(exc)

    if not docsets:
        console.print("[yellow]No docsets installed.[/yellow] Use 'lazydocs install <docset>'.")
        console.print(f"Popular docsets: {POPULAR_DOCSETS}")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Slug")
    table.add_column("Name")
    table.add_column("Entries", justify="right")
    table.add_column("Installed")
    for docset in docsets:
        installed = docset.installed_at.strftime("%Y-%m-%d") if docset.installed_at else ""
        table.add_row(escape(docset.slug), escape(docset.display_name), str(docset.entry_count), installed)
    console.print(table)


@app.command()
def available(
    query: str = typer.Argument("", help="Filter by slug or name"),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached manifest"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """List docsets available for install."""
    with _open_app(data_dir, verbose) as docs:
        try:
            manifest = filter_manifest(docs.list_available_docsets(refresh), query)
        except LazydocsError as exc:
            _fail(exc)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Slug")
    table.add_column("Name")
    table.add_column("Release")
    table.add_column("Size", justify="right")
    for entry in manifest:
        size = f"{entry.db_size / 1024 / 1024:.1f} MB"
        table.add_row(escape(entry.slug), escape(entry.name), escape(entry.release), size)
    console.print(table)
    console.print(f"{len(manifest)} docsets found. Install with: lazydocs install <slug>")


@app.command()
def install(
    slug: str = typer.Argument(..., help="Docset slug, e.g. python~3.12"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Download and index a docset."""
    with _open_app(data_dir, verbose) as docs:
        with Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            console=console,
        ) as progress:
            task = progress.add_task(f"Installing {slug}", total=None)

            def report(downloaded: int, total: int, status: str) -> None:
                progress.update(
                    task,
                    completed=downloaded,
                    total=total or None,
                    description=f"{status} {slug}",
                )

            try:
                docset = docs.install_docset(slug, report)
            except LazydocsError as exc:
                progress.stop()
                _fail(exc)

    console.print(f"Installed [bold]{docset.slug}[/bold] ({docset.entry_count} entries)")


@app.command()
def remove(
    slug: str = typer.Argument(..., help="Installed docset slug"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove an installed docset."""
    with _open_app(data_dir, verbose) as docs:
        try:
            docs.remove_docset(slug)
        except LazydocsError as exc:
            _fail(exc)
    console.print(f"Removed {slug}")


@app.command()
def update(
    slug: str = typer.Argument("all", help="Docset slug, or 'all'"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Reinstall one docset or every installed docset."""
    with _open_app(data_dir, verbose) as docs:
        slugs = None if slug == "all" else [slug]
        try:
            report = docs.update_docsets(slugs)
        except LazydocsError as exc:
            _fail(exc)

    for docset in report.updated:
        console.print(f"Updated {docset.slug} ({docset.entry_count} entries)")
    for failed_slug, reason in report.failed.items():
        console.print(f"[red]Failed to update {escape(failed_slug)}:[/red] {escape(reason)}")
    if report.failed:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    docset: str = typer.Option("", "--docset", "-d", help="Restrict to one docset"),
    version: str = typer.Option("", "--version", help="Restrict to one docset version"),
    limit: int = typer.Option(20, help="Number of results to display"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Full-text search across installed docsets."""
    with _open_app(data_dir, verbose) as docs:
        try:
            results = docs.search(query, docset, version, limit)
        except LazydocsError as exc:
            _fail(exc)

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Docset")
    table.add_column("Symbol")
    table.add_column("Path")
    table.add_column("Snippet")
    for result in results:
        snippet = escape(result.snippet.replace("\n", " "))
        snippet = snippet.replace("<mark>", "[bold]").replace("</mark>", "[/bold]")
        label = format_slug(result.docset, result.version)
        table.add_row(escape(label), escape(result.symbol), escape(result.path), snippet)
    console.print(table)


@app.command()
def show(
    docset: str = typer.Argument(..., help="Docset name"),
    path: str = typer.Argument(..., help="Entry path within the docset"),
    version: str = typer.Option("", "--version", help="Docset version"),
    data_dir: Path = DataDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Print one documentation entry."""
    with _open_app(data_dir, verbose) as docs:
        try:
            entry = docs.get_entry(docset, version, path)
        except LazydocsError as exc:
            _fail(exc)
    console.print(Markdown(entry.content))
