"""Parse command implementation."""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from epub_toc.cache.manager import CacheManager
from epub_toc.core.epub_parser import parse_epub
from epub_toc.models.options import ParserOptions


def count_nodes(structure: list[dict] | None) -> int:
    """Count TOC nodes in a serialized structure."""
    if not structure:
        return 0
    return sum(1 + count_nodes(node.get("children")) for node in structure)


def load_record(
    book_path: Path,
    options: ParserOptions,
    force: bool,
    quiet: bool,
    console: Console,
) -> dict:
    """Return the parse record for a book, from cache when possible."""
    # Cache lives next to the book
    cache_manager = CacheManager(book_path.parent)

    if not force:
        record = cache_manager.get_cached_record(book_path, options)
        if record is not None:
            if not quiet:
                console.print("[dim]Using cached structure[/]")
            return record

    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Parsing EPUB...", total=None)
            parsed = parse_epub(book_path, input_type="path", options=options)
    else:
        parsed = parse_epub(book_path, input_type="path", options=options)

    cache_manager.save_record(book_path, parsed, options)
    if not quiet:
        console.print("[dim]Cached structure[/]")
    return parsed.to_record()


def execute_parse(
    book_path: Path,
    output: Path | None,
    expand: bool,
    force: bool,
    quiet: bool,
    console: Console,
) -> None:
    """Execute the parse command."""
    options = ParserOptions(expand=expand)

    # JSON goes to stdout, keep it clean
    if output is None:
        quiet = True

    record = load_record(book_path, options, force, quiet, console)
    payload = json.dumps(record, ensure_ascii=False, indent=2)

    if output is None:
        typer.echo(payload)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")

    if not quiet:
        info = record["info"]
        structure = record["structure"]
        summary_lines = [
            f"[bold]{info.get('title') or 'Unknown Title'}[/]",
            f"[dim]Author:[/] {info.get('author') or 'Unknown'}",
            f"[dim]Sections:[/] {len(record['sections'])}",
            f"[dim]TOC entries:[/] {count_nodes(structure) if structure is not None else 'none'}",
            "",
            f"[dim]Output:[/] {output}",
        ]
        console.print(
            Panel(
                "\n".join(summary_lines),
                title="Complete",
                border_style="green",
            )
        )
