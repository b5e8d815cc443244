"""Write segmented TOC nodes to an output directory."""

from datetime import datetime
from pathlib import Path

from epub_toc.core.content_processor import ContentProcessor, OutputFormat
from epub_toc.core.epub_parser import ParsedEpub
from epub_toc.models.epub import TocNode
from epub_toc.models.output import BookOutput, NodeMetadata, NodeOutput


def walk_with_depth(nodes: list[TocNode], depth: int = 0):
    """Yield (node, depth) pairs in pre-order."""
    for node in nodes:
        yield node, depth
        yield from walk_with_depth(node.children, depth + 1)


class OutputWriter:
    """Write TOC node contents to JSON files."""

    def __init__(self, output_dir: Path, source_path: Path, processor: ContentProcessor | None = None):
        """Initialize output writer.

        Args:
            output_dir: Directory to write output files
            source_path: Path to source EPUB
            processor: Converter used for text and html output
        """
        self.output_dir = output_dir
        self.source_path = source_path
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.processor = processor or ContentProcessor()

    def render(self, node: TocNode, output_format: OutputFormat) -> str:
        if output_format == "markdown":
            return node.markdown_content or ""
        if not node.content:
            return ""
        return self.processor.process(node.content, output_format)

    def write_node(
        self,
        node: TocNode,
        index: int,
        depth: int,
        output_format: OutputFormat = "markdown",
    ) -> tuple[Path, NodeMetadata]:
        """Write single node to JSON file."""
        content = self.render(node, output_format)
        stats = self.processor.get_stats(content)

        metadata = NodeMetadata(
            node_index=index,
            title=node.name,
            depth=depth,
            play_order=node.play_order,
            section_id=node.section_id,
            node_id=node.node_id,
            source_file=node.file_path,
            source_path=str(self.source_path),
            extracted_at=datetime.now(),
            word_count=stats["word_count"],
            character_count=stats["character_count"],
            paragraph_count=stats["paragraph_count"],
        )
        output = NodeOutput(metadata=metadata, content=content, format=output_format)

        filepath = self.output_dir / f"node_{index + 1:03d}.json"
        filepath.write_text(output.model_dump_json(indent=2))

        return filepath, metadata

    def write_all(
        self, parsed: ParsedEpub, output_format: OutputFormat = "markdown"
    ) -> list[NodeMetadata]:
        """Write every node of the structure, in pre-order."""
        metadata = []
        for index, (node, depth) in enumerate(walk_with_depth(parsed.structure or [])):
            _, node_metadata = self.write_node(node, index, depth, output_format)
            metadata.append(node_metadata)
        return metadata

    def write_manifest(self, parsed: ParsedEpub, node_metadata: list[NodeMetadata]) -> Path:
        """Write book manifest file."""
        manifest = BookOutput(
            book_title=parsed.info.title,
            author=parsed.info.author,
            publisher=parsed.info.publisher,
            total_nodes=len(node_metadata),
            total_sections=len(parsed.sections),
            toc_path=parsed.toc_path,
            output_directory=str(self.output_dir),
            created_at=datetime.now(),
            nodes=node_metadata,
        )

        filepath = self.output_dir / "manifest.json"
        filepath.write_text(manifest.model_dump_json(indent=2))
        return filepath
