"""Data models."""

from epub_toc.models.epub import (
    BookMetadata,
    HtmlNode,
    ManifestItem,
    PackageInfo,
    TocNode,
)
from epub_toc.models.options import MarkdownOptions, ParserOptions

__all__ = [
    # EPUB models
    "BookMetadata",
    "HtmlNode",
    "ManifestItem",
    "PackageInfo",
    "TocNode",
    # Options
    "MarkdownOptions",
    "ParserOptions",
]
