"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from epub_toc.cache.manager import CacheManager
from epub_toc.commands.export import execute_export
from epub_toc.commands.parse import execute_parse
from epub_toc.core.content_processor import ContentProcessor
from epub_toc.core.epub_parser import parse_epub
from epub_toc.errors import EpubError
from epub_toc.models.epub import TocNode

app = typer.Typer(
    name="epub-toc",
    help="Parse EPUB files into metadata, sections and a content-annotated TOC.",
    add_completion=False,
)

console = Console()

# Cache subcommand group
cache_app = typer.Typer(help="Cache management commands")
app.add_typer(cache_app, name="cache")

BookPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Parse EPUB files into metadata, sections and a content-annotated TOC."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def add_toc_branch(tree: Tree, nodes: list[TocNode]) -> None:
    """Recursively add TOC nodes to a rich tree."""
    for node in nodes:
        label = f"{escape(node.name) or '[dim](untitled)[/]'} [dim]{escape(node.path)}[/]"
        branch = tree.add(label)
        add_toc_branch(branch, node.children)


@app.command()
def info(book_path: BookPath) -> None:
    """Display book metadata and table of contents."""
    try:
        parsed = parse_epub(book_path, input_type="path")
    except (EpubError, OSError) as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)

    info_lines = [
        f"[bold]{escape(parsed.info.title or 'Unknown Title')}[/]",
        "",
        f"[dim]Author:[/] {escape(parsed.info.author or 'Unknown')}",
        f"[dim]Publisher:[/] {escape(parsed.info.publisher or 'Unknown')}",
        f"[dim]Language:[/] {escape(parsed.info.language or 'Unknown')}",
        f"[dim]Version:[/] {parsed.package.version or 'Unknown'}",
        f"[dim]Sections:[/] {len(parsed.sections)}",
        f"[dim]TOC source:[/] {parsed.toc_path or 'none'}",
    ]

    console.print()
    console.print(
        Panel(
            "\n".join(info_lines),
            title="Book Information",
            border_style="green",
        )
    )

    console.print()
    if parsed.structure is None:
        console.print("[yellow]No table of contents[/]")
    else:
        tree = Tree("[bold cyan]Table of Contents[/]")
        add_toc_branch(tree, parsed.structure)
        console.print(tree)

    # Section table
    console.print()
    processor = ContentProcessor()
    table = Table(title="Sections", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Id", style="white")
    table.add_column("Words", justify="right", style="green")

    for i, section in enumerate(parsed.sections):
        stats = processor.get_stats(section.markdown)
        table.add_row(str(i + 1), section.id, f"{stats['word_count']:,}")

    console.print(table)
    console.print()


@app.command()
def parse(
    book_path: BookPath,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Write JSON to this file (default: stdout)",
        ),
    ] = None,
    expand: Annotated[
        bool,
        typer.Option(
            "--expand",
            help="Expand sections into HTML node trees while parsing",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Force re-parsing, ignore cache",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Parse an EPUB and write its metadata, TOC and sections as JSON."""
    try:
        execute_parse(
            book_path=book_path,
            output=output,
            expand=expand,
            force=force,
            quiet=quiet,
            console=console,
        )
    except (EpubError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def export(
    book_path: BookPath,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            help="Output directory (default: {book_name}_toc/)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: markdown, text, or html",
        ),
    ] = "markdown",
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Export the content of every TOC entry to JSON files."""
    if output_format not in ("markdown", "text", "html"):
        console.print(
            f"[red]Invalid format: {output_format}. Use markdown, text, or html.[/]"
        )
        raise typer.Exit(1)

    try:
        execute_export(
            book_path=book_path,
            output_dir=output_dir,
            output_format=output_format,  # type: ignore
            quiet=quiet,
            console=console,
        )
    except (EpubError, OSError) as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@cache_app.command("clear")
def cache_clear(
    project_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Directory containing the cache (default: current directory)",
        ),
    ] = Path("."),
) -> None:
    """Clear all cached data."""
    cache_manager = CacheManager(project_dir.resolve())
    count = cache_manager.clear_cache()

    if count > 0:
        console.print(f"[green]Cleared {count} cached file(s)[/]")
    else:
        console.print("[dim]No cache to clear[/]")


@cache_app.command("list")
def cache_list(
    project_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            "-d",
            help="Directory containing the cache (default: current directory)",
        ),
    ] = Path("."),
) -> None:
    """List all cached files."""
    cache_manager = CacheManager(project_dir.resolve())
    cached = cache_manager.list_cached()

    if not cached:
        console.print("[dim]No cached files[/]")
        return

    table = Table(title="Cached Files", show_header=True, header_style="bold cyan")
    table.add_column("Path", style="white")
    table.add_column("Hash", style="dim", width=12)

    for path, file_hash in cached:
        # Truncate path for display
        display_path = path if len(path) < 60 else "..." + path[-57:]
        table.add_row(display_path, file_hash[:12])

    console.print(table)


if __name__ == "__main__":
    app()
