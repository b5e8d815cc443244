"""Cross-reference helpers linking TOC hrefs to manifest items."""

from typing import NamedTuple
from urllib.parse import unquote

from epub_toc.models.epub import ManifestItem


class Link(NamedTuple):
    """An href split at its fragment."""

    path: str  # Everything before "#"
    name: str  # Final segment of path
    hash: str  # Fragment, "" when absent


def parse_link(href: str) -> Link:
    """Split an href into its path, filename and fragment."""
    path, _, fragment = href.partition("#")
    name = path.rsplit("/", 1)[-1]
    return Link(path=path, name=name, hash=fragment)


def resolve_section_id(href: str, manifest: list[ManifestItem]) -> str | None:
    """Find the manifest id whose href names the same file as ``href``.

    Directories are ignored; the first match in manifest order wins.
    """
    target = unquote(parse_link(href).name)
    if not target:
        return None
    for item in manifest:
        if item.href and unquote(parse_link(item.href).name) == target:
            return item.id
    return None
