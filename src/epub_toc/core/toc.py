"""Table of contents location and construction.

Two TOC formats exist in the wild:

- the legacy NCX navigation map (``<ncx><navMap><navPoint>``), and
- the XHTML navigation document (``<nav epub:type="toc"><ol><li><a>``).

``TocLocator`` tries an ordered list of candidates and keeps the first one
that produces a tree. Candidate failures never abort the parse; they are
logged and the next candidate is tried.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from lxml import etree

from epub_toc.core.archive import EpubArchive
from epub_toc.core.links import parse_link, resolve_section_id
from epub_toc.core.package import parse_int
from epub_toc.core.paths import resolve_path
from epub_toc.core.xmlutils import (
    children_named,
    first_child,
    get_attr,
    local_name,
    parse_xml,
    text_content,
)
from epub_toc.errors import EpubError, EpubParseError
from epub_toc.models.epub import ManifestItem, PackageInfo, TocNode

log = logging.getLogger(__name__)


class TocOutcome(str, Enum):
    """Result of a single TOC candidate."""

    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass
class TocAttempt:
    """What a candidate produced."""

    candidate: str
    outcome: TocOutcome
    nodes: list[TocNode] = field(default_factory=list)
    source_path: str | None = None
    error: EpubError | None = None


@dataclass
class TocCandidate:
    """Configuration for a TOC source."""

    name: str
    applies: Callable[[PackageInfo], bool]
    select: Callable[[PackageInfo], ManifestItem | None]
    description: str


def _is_modern(package: PackageInfo) -> bool:
    return package.version is not None and package.version >= 3


def _select_nav(package: PackageInfo) -> ManifestItem | None:
    return package.find_by_property("nav")


def _select_legacy(package: PackageInfo) -> ManifestItem | None:
    if package.toc_id:
        return package.get_item(package.toc_id)
    # Malformed packages sometimes only flag the nav document
    return package.find_by_property("nav")


CANDIDATES = [
    TocCandidate(
        name="modern",
        applies=_is_modern,
        select=_select_nav,
        description="XHTML navigation document flagged with properties='nav'",
    ),
    TocCandidate(
        name="legacy",
        applies=lambda package: True,
        select=_select_legacy,
        description="Document named by the spine's toc attribute",
    ),
]


class TocLocator:
    """Find and build the book's table of contents."""

    def __init__(self, archive: EpubArchive, package: PackageInfo, root: str):
        self.archive = archive
        self.package = package
        self.root = root

    def locate(self) -> TocAttempt | None:
        """Return the first successful attempt, or None if the book has no TOC."""
        tried: set[str] = set()
        for candidate in CANDIDATES:
            if not candidate.applies(self.package):
                continue
            item = candidate.select(self.package)
            if item is not None and item.id in tried:
                continue
            attempt = self.attempt(candidate.name, item)
            if item is not None:
                tried.add(item.id)
            if attempt.outcome is TocOutcome.FOUND:
                log.debug(
                    "TOC from %s candidate: %s (%d top-level nodes)",
                    candidate.name,
                    attempt.source_path,
                    len(attempt.nodes),
                )
                return attempt
            if attempt.outcome is TocOutcome.FAILED:
                log.warning(
                    "Could not read %s TOC %s: %s",
                    candidate.name,
                    attempt.source_path,
                    attempt.error,
                )
        log.info("No table of contents found")
        return None

    def attempt(self, name: str, item: ManifestItem | None) -> TocAttempt:
        """Read and build the TOC document behind a manifest item."""
        if item is None or not item.href:
            return TocAttempt(name, TocOutcome.ABSENT)

        path = resolve_path(item.href, self.root)
        try:
            document = parse_xml(self.archive.read_bytes(path), path)
            nodes = build_toc(document, self.package.manifest, path)
        except EpubError as e:
            return TocAttempt(name, TocOutcome.FAILED, source_path=path, error=e)

        if not nodes:
            return TocAttempt(name, TocOutcome.ABSENT, source_path=path)
        return TocAttempt(name, TocOutcome.FOUND, nodes=nodes, source_path=path)


def build_toc(document: etree._Element, manifest: list[ManifestItem], path: str) -> list[TocNode]:
    """Dispatch on the document's root element."""
    root_name = local_name(document)
    if root_name == "ncx":
        return build_nav_map_toc(document, manifest, path)
    if root_name == "html":
        return build_nav_document_toc(document, manifest, path)
    raise EpubParseError(path, f"unsupported TOC root element <{root_name}>")


def _make_node(
    name: str,
    href: str,
    play_order: int,
    children: list[TocNode],
    manifest: list[ManifestItem],
) -> TocNode:
    return TocNode(
        name=name,
        path=href,
        section_id=resolve_section_id(href, manifest),
        node_id=parse_link(href).hash or None,
        play_order=play_order,
        children=children,
    )


# =============================================================================
# Legacy format: NCX navigation map
# =============================================================================


def build_nav_map_toc(
    document: etree._Element, manifest: list[ManifestItem], path: str
) -> list[TocNode]:
    nav_map = first_child(document, "navMap")
    if nav_map is None:
        raise EpubParseError(path, "no <navMap> element")
    nodes, _ = _walk_nav_points(nav_map, manifest, 1)
    return nodes


def _walk_nav_points(
    parent: etree._Element, manifest: list[ManifestItem], order: int
) -> tuple[list[TocNode], int]:
    """Build nodes for the navPoints under ``parent``.

    Returns the nodes and the next free play order.
    """
    nodes: list[TocNode] = []
    for point in children_named(parent, "navPoint"):
        content = first_child(point, "content")
        src = (content.get("src") or "").strip() if content is not None else ""

        if not src:
            # Nothing to link to: keep the subtree in this node's place
            children, order = _walk_nav_points(point, manifest, order)
            nodes.extend(children)
            continue

        label = first_child(point, "navLabel")
        text_el = first_child(label, "text") if label is not None else None
        name = text_content(text_el).strip() if text_el is not None else ""

        declared = parse_int(point.get("playOrder"))
        play_order = declared if declared is not None else order
        order += 1

        children, order = _walk_nav_points(point, manifest, order)
        nodes.append(_make_node(name, src, play_order, children, manifest))
    return nodes, order


# =============================================================================
# Modern format: XHTML navigation document
# =============================================================================


def build_nav_document_toc(
    document: etree._Element, manifest: list[ManifestItem], path: str
) -> list[TocNode]:
    nav = _find_toc_nav(document)
    if nav is None:
        raise EpubParseError(path, "no <nav> element")
    ol = first_child(nav, "ol")
    if ol is None:
        return []
    nodes, _ = _walk_nav_list(ol, manifest, 1)
    return nodes


def _find_toc_nav(document: etree._Element) -> etree._Element | None:
    navs = [el for el in document.iter() if local_name(el) == "nav"]
    for nav in navs:
        if "toc" in (get_attr(nav, "type") or "").split():
            return nav
    return navs[0] if navs else None


def _walk_nav_list(
    ol: etree._Element, manifest: list[ManifestItem], order: int
) -> tuple[list[TocNode], int]:
    """Build nodes for the list items of ``ol``; play order is pre-order."""
    nodes: list[TocNode] = []
    for li in children_named(ol, "li"):
        anchor = _first_link(li)

        if anchor is None:
            for nested in children_named(li, "ol"):
                children, order = _walk_nav_list(nested, manifest, order)
                nodes.extend(children)
            continue

        play_order = order
        order += 1

        children: list[TocNode] = []
        for nested in children_named(li, "ol"):
            nested_nodes, order = _walk_nav_list(nested, manifest, order)
            children.extend(nested_nodes)

        href = anchor.get("href").strip()
        nodes.append(_make_node(_link_name(anchor), href, play_order, children, manifest))
    return nodes, order


def _first_link(li: etree._Element) -> etree._Element | None:
    """First ``a[href]`` of a list item, not looking into nested lists."""
    for child in li:
        if local_name(child) == "ol":
            continue
        for el in child.iter():
            if local_name(el) == "a" and (el.get("href") or "").strip():
                return el
    return None


def _link_name(anchor: etree._Element) -> str:
    """Link text, with any label spans (e.g. chapter numbers) in front."""
    spans = list(children_named(anchor, "span"))
    if not spans:
        return text_content(anchor).strip()
    prefix = "".join(text_content(span) for span in spans)
    own = (anchor.text or "") + "".join(child.tail or "" for child in anchor)
    return (prefix + own).strip()
