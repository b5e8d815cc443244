"""Tests for archive access and package document parsing."""

import pytest

from epub_toc.core.archive import EpubArchive
from epub_toc.core.package import parse_int, parse_package, read_container
from epub_toc.errors import EpubParseError, NotFoundError
from tests.epub_factory import XHTML, build_epub, build_opf


class TestEpubArchive:
    """Tests for EpubArchive lookups."""

    def test_reads_text_and_bytes(self):
        archive = EpubArchive(build_epub({"OEBPS/a.xhtml": "<p>hi</p>"}))
        assert archive.read_text("OEBPS/a.xhtml") == "<p>hi</p>"
        assert archive.read_bytes("OEBPS/a.xhtml") == b"<p>hi</p>"

    def test_percent_encoded_paths_are_decoded(self):
        """Hrefs are percent-encoded, archive names are not."""
        archive = EpubArchive(build_epub({"OEBPS/my chapter.xhtml": "x"}))
        assert archive.has("OEBPS/my%20chapter.xhtml")
        assert archive.read_text("OEBPS/my%20chapter.xhtml") == "x"

    def test_case_insensitive_fallback(self):
        archive = EpubArchive(build_epub({"OEBPS/Text/Ch1.xhtml": "x"}))
        assert archive.read_text("oebps/text/ch1.xhtml") == "x"

    def test_missing_path_raises_not_found(self):
        archive = EpubArchive(build_epub({}))
        with pytest.raises(NotFoundError) as exc_info:
            archive.read_bytes("OEBPS/missing.xhtml")
        assert exc_info.value.path == "OEBPS/missing.xhtml"

    def test_not_a_zip(self):
        with pytest.raises(EpubParseError):
            EpubArchive(b"definitely not a zip file")

    def test_file_handles_are_memoized(self):
        """The same handle (and parsed DOM) is returned for every lookup."""
        archive = EpubArchive(build_epub({"a.xhtml": "<p id='x'>hi</p>"}))
        handle = archive.file("a.xhtml")
        assert archive.file("a.xhtml") is handle
        assert handle.soup is handle.soup
        assert handle.soup.find(id="x").get_text() == "hi"


class TestReadContainer:
    """Tests for read_container function."""

    def test_returns_rootfile_path(self):
        archive = EpubArchive(build_epub({}, opf_path="OPS/package.opf"))
        assert read_container(archive) == "OPS/package.opf"

    def test_missing_container_is_fatal(self):
        archive = EpubArchive(build_epub({}, container=False))
        with pytest.raises(NotFoundError):
            read_container(archive)

    def test_container_without_rootfile(self):
        archive = EpubArchive(
            build_epub(
                {"META-INF/container.xml": "<container><rootfiles/></container>"},
                container=False,
            )
        )
        with pytest.raises(EpubParseError):
            read_container(archive)


class TestParseInt:
    """Tests for parse_int function."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("3.0", 3), ("2.0.1", 2), (" 3 ", 3), ("abc", None), ("", None), (None, None)],
    )
    def test_leading_integer(self, value, expected):
        assert parse_int(value) == expected


ITEMS = [
    ("c1", "c1.xhtml", XHTML, None),
    ("c2", "c2.xhtml", XHTML, None),
    ("nav", "nav.xhtml", XHTML, "nav scripted"),
]


class TestParsePackage:
    """Tests for parse_package function."""

    def test_manifest_spine_and_version(self):
        opf = build_opf(ITEMS, ["c1", "c2"], version="3.0", toc_id="ncx")
        package = parse_package(opf.encode(), "content.opf")

        assert package.version == 3
        assert [item.id for item in package.manifest] == ["c1", "c2", "nav"]
        assert package.manifest[0].href == "c1.xhtml"
        assert package.manifest[0].media_type == XHTML
        assert package.spine == ["c1", "c2"]
        assert package.toc_id == "ncx"

    def test_nav_property_lookup(self):
        """properties is a space separated list."""
        package = parse_package(build_opf(ITEMS, ["c1"]).encode(), "content.opf")
        assert package.find_by_property("nav").id == "nav"
        assert package.find_by_property("cover-image") is None

    def test_missing_version(self):
        package = parse_package(build_opf(ITEMS, ["c1"], version=None).encode(), "content.opf")
        assert package.version is None

    def test_non_numeric_version(self):
        package = parse_package(build_opf(ITEMS, ["c1"], version="x").encode(), "content.opf")
        assert package.version is None

    def test_spine_duplicates_collapse_in_first_seen_order(self):
        opf = build_opf(ITEMS, ["c2", "c1", "c2", "c1"])
        assert parse_package(opf.encode(), "content.opf").spine == ["c2", "c1"]

    def test_missing_manifest_and_spine_yield_empty_lists(self):
        opf = build_opf(ITEMS, ["c1"], include_manifest=False, include_spine=False)
        package = parse_package(opf.encode(), "content.opf")
        assert package.manifest == []
        assert package.spine == []
        assert package.toc_id is None

    def test_metadata(self):
        opf = build_opf(ITEMS, ["c1"], title="A Book", creator="Ann Author", publisher="Pub Co")
        metadata = parse_package(opf.encode(), "content.opf").metadata
        assert metadata.title == "A Book"
        assert metadata.author == "Ann Author"
        assert metadata.publisher == "Pub Co"

    def test_compound_creator_uses_text_content(self):
        """A creator with attributes and child markup still yields its text."""
        creator = (
            '<dc:creator xmlns:opf="http://www.idpf.org/2007/opf" opf:role="aut">'
            "<span>Ann</span> Author</dc:creator>"
        )
        opf = build_opf(ITEMS, ["c1"], creator=creator)
        assert parse_package(opf.encode(), "content.opf").metadata.author == "Ann Author"

    def test_absent_metadata_fields(self):
        opf = build_opf(ITEMS, ["c1"], title=None, creator=None)
        metadata = parse_package(opf.encode(), "content.opf").metadata
        assert metadata.title is None
        assert metadata.author is None
        assert metadata.publisher is None

    def test_malformed_xml_is_fatal(self):
        with pytest.raises(EpubParseError) as exc_info:
            parse_package(b"<package><manifest></package>", "OEBPS/content.opf")
        assert exc_info.value.path == "OEBPS/content.opf"
