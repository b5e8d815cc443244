"""Parse EPUB containers into metadata, sections and a content-annotated TOC."""

from epub_toc.core.epub_parser import (
    EpubParser,
    ParsedEpub,
    parse_epub,
    parse_epub_async,
)
from epub_toc.core.sections import Section
from epub_toc.errors import EpubError, EpubParseError, NotFoundError
from epub_toc.models import BookMetadata, PackageInfo, ParserOptions, TocNode

__version__ = "0.1.0"

__all__ = [
    "EpubParser",
    "ParsedEpub",
    "parse_epub",
    "parse_epub_async",
    "Section",
    "TocNode",
    "BookMetadata",
    "PackageInfo",
    "ParserOptions",
    "EpubError",
    "EpubParseError",
    "NotFoundError",
]
