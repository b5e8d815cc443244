"""Tests for TOC location and both TOC formats."""

import pytest
from lxml import etree

from epub_toc.core.archive import EpubArchive
from epub_toc.core.package import parse_package
from epub_toc.core.toc import (
    TocLocator,
    TocOutcome,
    build_nav_document_toc,
    build_nav_map_toc,
    build_toc,
)
from epub_toc.errors import EpubParseError
from epub_toc.models.epub import ManifestItem, TocNode
from tests.epub_factory import (
    build_nav,
    build_ncx,
    nav_li,
    nav_point,
    simple_book,
)

MANIFEST = [
    ManifestItem(id="ch1", href="ch1.xhtml"),
    ManifestItem(id="ch2", href="Text/ch2.xhtml"),
    ManifestItem(id="ch3", href="ch3.xhtml"),
]


def _xml(text: str) -> etree._Element:
    return etree.fromstring(text.encode())


def _play_orders(nodes: list[TocNode]) -> list[int]:
    return [node.play_order for top in nodes for node in top.iter_nodes()]


def _locate(data: bytes):
    archive = EpubArchive(data)
    package = parse_package(archive.read_bytes("OEBPS/content.opf"), "OEBPS/content.opf")
    return TocLocator(archive, package, "OEBPS/").locate()


# =============================================================================
# Legacy format
# =============================================================================


class TestNavMapToc:
    """Tests for the NCX navigation map builder."""

    def test_builds_nested_tree(self):
        ncx = build_ncx(
            nav_point("Part One", "ch1.xhtml", 1, children=nav_point("Section", "ch2.xhtml#s1", 2))
            + nav_point("Part Two", "ch3.xhtml", 3)
        )
        nodes = build_nav_map_toc(_xml(ncx), MANIFEST, "toc.ncx")

        assert [node.name for node in nodes] == ["Part One", "Part Two"]
        section = nodes[0].children[0]
        assert section.name == "Section"
        assert section.path == "ch2.xhtml#s1"
        assert section.section_id == "ch2"
        assert section.node_id == "s1"
        assert nodes[1].children == []

    def test_node_id_absent_without_fragment(self):
        nodes = build_nav_map_toc(_xml(build_ncx(nav_point("One", "ch1.xhtml", 1))), MANIFEST, "toc.ncx")
        assert nodes[0].node_id is None
        assert nodes[0].section_id == "ch1"

    def test_declared_play_order_is_kept(self):
        ncx = build_ncx(nav_point("One", "ch1.xhtml", 7) + nav_point("Two", "ch3.xhtml", 9))
        assert _play_orders(build_nav_map_toc(_xml(ncx), MANIFEST, "toc.ncx")) == [7, 9]

    def test_missing_play_order_is_assigned_in_pre_order(self):
        ncx = build_ncx(
            nav_point("A", "ch1.xhtml", children=nav_point("B", "ch1.xhtml#b"))
            + nav_point("C", "ch3.xhtml")
        )
        assert _play_orders(build_nav_map_toc(_xml(ncx), MANIFEST, "toc.ncx")) == [1, 2, 3]

    def test_nav_point_without_src_promotes_children(self):
        ncx = build_ncx(
            '<navPoint id="x"><navLabel><text>Empty</text></navLabel>'
            + nav_point("Inner", "ch1.xhtml", 1)
            + "</navPoint>"
        )
        nodes = build_nav_map_toc(_xml(ncx), MANIFEST, "toc.ncx")
        assert [node.name for node in nodes] == ["Inner"]

    def test_missing_nav_map(self):
        document = _xml('<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/"><head/></ncx>')
        with pytest.raises(EpubParseError):
            build_nav_map_toc(document, MANIFEST, "toc.ncx")


# =============================================================================
# Modern format
# =============================================================================


class TestNavDocumentToc:
    """Tests for the XHTML navigation document builder."""

    def test_builds_nested_tree_from_toc_nav(self):
        """The toc-typed nav is used, not the landmarks nav before it."""
        nav = build_nav(
            nav_li("One", "ch1.xhtml", children=nav_li("One A", "ch1.xhtml#a"))
            + nav_li("Three", "ch3.xhtml")
        )
        nodes = build_nav_document_toc(_xml(nav), MANIFEST, "nav.xhtml")

        assert [node.name for node in nodes] == ["One", "Three"]
        child = nodes[0].children[0]
        assert child.name == "One A"
        assert child.node_id == "a"
        assert child.section_id == "ch1"

    def test_play_order_is_global_pre_order(self):
        """Play order strictly increases over the whole tree, whatever the depth."""
        nav = build_nav(
            nav_li(
                "A",
                "ch1.xhtml",
                children=nav_li("B", "ch1.xhtml#b", children=nav_li("C", "ch1.xhtml#c"))
                + nav_li("D", "ch1.xhtml#d"),
            )
            + nav_li("E", "ch3.xhtml")
        )
        nodes = build_nav_document_toc(_xml(nav), MANIFEST, "nav.xhtml")
        orders = _play_orders(nodes)

        assert orders == [1, 2, 3, 4, 5]
        assert [node.name for top in nodes for node in top.iter_nodes()] == ["A", "B", "C", "D", "E"]

    def test_label_spans_are_prepended(self):
        nav = build_nav('<li><a href="ch1.xhtml"><span class="num">1.</span> Introduction</a></li>')
        nodes = build_nav_document_toc(_xml(nav), MANIFEST, "nav.xhtml")
        assert nodes[0].name == "1. Introduction"

    def test_link_text_is_trimmed(self):
        nav = build_nav('<li><a href="ch1.xhtml">\n   Spaced  \n</a></li>')
        assert build_nav_document_toc(_xml(nav), MANIFEST, "nav.xhtml")[0].name == "Spaced"

    def test_item_without_link_promotes_children(self):
        nav = build_nav("<li><span>Group</span><ol>" + nav_li("Inside", "ch1.xhtml") + "</ol></li>")
        nodes = build_nav_document_toc(_xml(nav), MANIFEST, "nav.xhtml")
        assert [node.name for node in nodes] == ["Inside"]
        assert nodes[0].play_order == 1

    def test_missing_nav_element(self):
        document = _xml('<html xmlns="http://www.w3.org/1999/xhtml"><body/></html>')
        with pytest.raises(EpubParseError):
            build_nav_document_toc(document, MANIFEST, "nav.xhtml")

    def test_dispatch_on_root_element(self):
        nav = _xml(build_nav(nav_li("One", "ch1.xhtml")))
        ncx = _xml(build_ncx(nav_point("Two", "ch3.xhtml", 1)))
        assert build_toc(nav, MANIFEST, "nav.xhtml")[0].name == "One"
        assert build_toc(ncx, MANIFEST, "toc.ncx")[0].name == "Two"
        with pytest.raises(EpubParseError):
            build_toc(_xml("<package/>"), MANIFEST, "x.xml")


# =============================================================================
# Locator
# =============================================================================


class TestTocLocator:
    """Tests for TOC source selection."""

    def test_version_3_prefers_nav_document(self):
        """With both sources present, version 3 picks the nav document."""
        attempt = _locate(simple_book(version="3.0"))
        assert attempt.outcome is TocOutcome.FOUND
        assert attempt.candidate == "modern"
        assert attempt.source_path == "OEBPS/nav.xhtml"
        assert attempt.nodes[0].name == "Nav One"

    def test_version_2_uses_ncx(self):
        attempt = _locate(simple_book(version="2.0"))
        assert attempt.candidate == "legacy"
        assert attempt.source_path == "OEBPS/toc.ncx"
        assert attempt.nodes[0].name == "Ncx One"

    def test_broken_nav_document_falls_back_to_ncx(self):
        broken = "<html><body><nav><ol><li><a href='ch1.xhtml'>One</li></ol></body>"
        attempt = _locate(simple_book(version="3.0", nav_doc=broken))
        assert attempt.candidate == "legacy"
        assert attempt.nodes[0].name == "Ncx One"

    def test_version_3_without_nav_uses_ncx(self):
        attempt = _locate(simple_book(version="3.0", with_nav=False))
        assert attempt.source_path == "OEBPS/toc.ncx"

    def test_nav_flagged_item_without_toc_attribute(self):
        """Older packages that only flag a nav document still get a TOC."""
        attempt = _locate(simple_book(version="2.0", with_ncx=False))
        assert attempt.candidate == "legacy"
        assert attempt.nodes[0].name == "Nav One"

    def test_no_toc_source(self):
        assert _locate(simple_book(with_nav=False, with_ncx=False)) is None
