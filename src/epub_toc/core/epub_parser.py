"""EPUB parsing: metadata, sections and a content-annotated TOC."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from epub_toc.core.archive import EpubArchive
from epub_toc.core.content_processor import ContentProcessor
from epub_toc.core.package import parse_package, read_container
from epub_toc.core.paths import resolve_path, resolve_root
from epub_toc.core.sections import Section, read_sections
from epub_toc.core.segmenter import ContentSegmenter
from epub_toc.core.toc import TocLocator
from epub_toc.models.epub import BookMetadata, PackageInfo, TocNode
from epub_toc.models.options import ParserOptions

log = logging.getLogger(__name__)

InputType = Literal["path", "binary", "buffer"]


class ParsedEpub(BaseModel):
    """Complete parsed EPUB structure."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    info: BookMetadata
    package: PackageInfo
    structure: list[TocNode] | None = None
    sections: list[Section]
    toc_path: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Plain-data view: info, structure and sections."""
        return {
            "info": self.info.model_dump(exclude_none=True),
            "structure": (
                [node.to_record() for node in self.structure]
                if self.structure is not None
                else None
            ),
            "sections": [section.to_record() for section in self.sections],
        }


class EpubParser:
    """Parse an EPUB archive held in memory."""

    def __init__(self, data: bytes, options: ParserOptions | None = None):
        self.options = options or ParserOptions()
        self.archive = EpubArchive(data)
        self.processor = ContentProcessor(self.options.markdown)

    def parse(self) -> ParsedEpub:
        """Parse the EPUB and return complete structure."""
        opf_path = read_container(self.archive)
        root = resolve_root(opf_path)
        log.debug("Package document %s (root %r)", opf_path, root)

        package = parse_package(self.archive.read_bytes(resolve_path(opf_path, "")), opf_path)
        sections = read_sections(
            self.archive,
            package,
            root,
            processor=self.processor,
            expand=self.options.expand,
        )

        structure = None
        toc_path = None
        attempt = TocLocator(self.archive, package, root).locate()
        if attempt is not None:
            toc_path = attempt.source_path
            segmenter = ContentSegmenter(
                self.archive,
                package.spine,
                sections,
                resolve_root(toc_path),
                processor=self.processor,
            )
            structure = segmenter.segment(attempt.nodes)

        return ParsedEpub(
            info=package.metadata,
            package=package,
            structure=structure,
            sections=sections,
            toc_path=toc_path,
        )


def load_source(target: str | bytes | os.PathLike, input_type: InputType | None = None) -> bytes:
    """Turn a path, binary string or buffer into archive bytes.

    ``input_type="path"`` always reads from disk. Otherwise a string naming an
    existing file is read from disk, any other string is taken as a binary
    string and bytes are used as-is.
    """
    if input_type == "path":
        return Path(target).read_bytes()
    if input_type is None and isinstance(target, (str, os.PathLike)) and os.path.exists(target):
        return Path(target).read_bytes()
    if isinstance(target, os.PathLike):
        raise FileNotFoundError(f"File not found: {target}")
    if isinstance(target, str):
        try:
            return target.encode("latin-1")
        except UnicodeEncodeError:
            # Binary strings hold one byte per char; anything wider was a path
            raise FileNotFoundError(f"File not found: {target}") from None
    return bytes(target)


def parse_epub(
    target: str | bytes | os.PathLike,
    input_type: InputType | None = None,
    expand: bool = False,
    options: ParserOptions | None = None,
) -> ParsedEpub:
    """Parse an EPUB from a path, binary string or bytes."""
    options = options or ParserOptions()
    if expand:
        options = options.model_copy(update={"expand": True})
    return EpubParser(load_source(target, input_type), options).parse()


async def parse_epub_async(
    target: str | bytes | os.PathLike,
    input_type: InputType | None = None,
    expand: bool = False,
    options: ParserOptions | None = None,
) -> ParsedEpub:
    """Run ``parse_epub`` in a worker thread."""
    return await asyncio.to_thread(parse_epub, target, input_type, expand, options)
