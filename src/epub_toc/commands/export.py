"""Export command implementation."""

import re
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from epub_toc.core.content_processor import OutputFormat
from epub_toc.core.epub_parser import parse_epub
from epub_toc.core.output_writer import OutputWriter


def get_default_output_dir(book_path: Path) -> Path:
    """Get default output directory based on book filename."""
    stem = book_path.stem
    # Clean up the filename for directory name
    clean_stem = re.sub(r"[^\w\s-]", "", stem).strip()
    clean_stem = re.sub(r"[-\s]+", "_", clean_stem)
    return book_path.parent / f"{clean_stem}_toc"


def execute_export(
    book_path: Path,
    output_dir: Path | None,
    output_format: OutputFormat,
    quiet: bool,
    console: Console,
) -> None:
    """Execute the export command."""
    if not quiet:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Parsing EPUB...", total=None)
            parsed = parse_epub(book_path, input_type="path")
    else:
        parsed = parse_epub(book_path, input_type="path")

    if parsed.structure is None:
        console.print("[yellow]Book has no table of contents. Nothing to export.[/]")
        return

    final_output_dir = output_dir or get_default_output_dir(book_path)
    writer = OutputWriter(final_output_dir, book_path)
    node_metadata = writer.write_all(parsed, output_format)
    manifest_path = writer.write_manifest(parsed, node_metadata)

    if not quiet:
        console.print()
        summary_lines = [
            f"[green]Exported {len(node_metadata)} TOC node(s)[/]",
            "",
            f"[dim]Output directory:[/] {final_output_dir}",
            f"[dim]Manifest:[/] {manifest_path.name}",
        ]
        console.print(
            Panel(
                "\n".join(summary_lines),
                title="Complete",
                border_style="green",
            )
        )
