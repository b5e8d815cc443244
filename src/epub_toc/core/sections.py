"""Spine documents as content sections."""

import base64
import logging
import mimetypes
from collections.abc import Callable
from functools import cached_property
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from epub_toc.core.archive import EpubArchive
from epub_toc.core.content_processor import ContentProcessor
from epub_toc.core.links import parse_link, resolve_section_id
from epub_toc.core.paths import resolve_path, resolve_root
from epub_toc.errors import NotFoundError
from epub_toc.models.epub import HtmlNode, PackageInfo

log = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


def is_internal_uri(uri: str) -> bool:
    """True for references into the archive (no URL scheme)."""
    return not urlparse(uri).scheme


class Section:
    """Content of a single spine document."""

    def __init__(
        self,
        id: str,
        html_string: str,
        path: str = "",
        resource_resolver: Callable[[str], bytes] | None = None,
        id_resolver: Callable[[str], str | None] | None = None,
        processor: ContentProcessor | None = None,
        expand: bool = False,
    ):
        self.id = id
        self.html_string = html_string
        self.path = path
        self._resource_resolver = resource_resolver
        self._id_resolver = id_resolver
        self._processor = processor or ContentProcessor()
        self.html_objects: list[HtmlNode] | None = None
        if expand:
            self.html_objects = self.to_html_objects()

    def __repr__(self) -> str:
        return f"Section(id={self.id!r}, path={self.path!r})"

    @cached_property
    def markdown(self) -> str:
        return self._processor.to_markdown(self.html_string)

    def to_markdown(self) -> str:
        return self.markdown

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "htmlString": self.html_string,
            "markdown": self.markdown,
        }
        if self.html_objects is not None:
            record["htmlObjects"] = [
                node.model_dump(exclude_none=True) for node in self.html_objects
            ]
        return record

    def to_html_objects(self) -> list[HtmlNode]:
        """Expand the document body into HtmlNode trees.

        Internal links become ``#<sectionId>[,<fragment>]`` and internal
        images are inlined as base64 data URIs.
        """
        soup = BeautifulSoup(self.html_string, "lxml")
        body = soup.body or soup
        return self._convert_children(body)

    def _convert_children(self, tag: Tag) -> list[HtmlNode]:
        nodes = []
        for child in tag.children:
            node = self._convert(child)
            if node is not None:
                nodes.append(node)
        return nodes

    def _convert(self, node) -> HtmlNode | None:
        if isinstance(node, Tag):
            attrs: dict[str, str] = {}
            if node.get("id"):
                attrs["id"] = node["id"]
            if node.get("href"):
                attrs["href"] = self.resolve_href(node["href"])
            if node.get("src"):
                attrs["src"] = self.resolve_src(node["src"])
            return HtmlNode(
                type=1,
                tag=node.name,
                attrs=attrs,
                children=self._convert_children(node),
            )
        if isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            if not node.strip():
                return None
            return HtmlNode(type=3, text=str(node))
        # comments, doctypes, processing instructions
        return None

    def resolve_href(self, href: str) -> str:
        if not is_internal_uri(href):
            return href
        link = parse_link(href)
        if link.path:
            section_id = self._id_resolver(href) if self._id_resolver else None
            if section_id is None:
                return href
        else:
            section_id = self.id
        if link.hash:
            return f"#{section_id},{link.hash}"
        return f"#{section_id}"

    def resolve_src(self, src: str) -> str:
        if not is_internal_uri(src) or self._resource_resolver is None:
            return src
        path = resolve_path(src, resolve_root(self.path))
        try:
            data = self._resource_resolver(path)
        except NotFoundError:
            log.warning("Image %s referenced by section %s not found", path, self.id)
            return src
        mime = mimetypes.guess_type(path)[0] or DEFAULT_IMAGE_MIME
        return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def read_sections(
    archive: EpubArchive,
    package: PackageInfo,
    root: str,
    processor: ContentProcessor | None = None,
    expand: bool = False,
) -> list[Section]:
    """Build one Section per spine id, in spine order."""
    sections = []
    for item_id in package.spine:
        item = package.get_item(item_id)
        if item is None or not item.href:
            log.warning("Spine item %s is not in the manifest", item_id)
            continue
        path = resolve_path(item.href, root)
        sections.append(
            Section(
                id=item_id,
                html_string=archive.read_text(path),
                path=path,
                resource_resolver=archive.read_bytes,
                id_resolver=lambda href: resolve_section_id(href, package.manifest),
                processor=processor,
                expand=expand,
            )
        )
    return sections
