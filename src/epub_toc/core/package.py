"""Container and package document parsing."""

import logging
import re

from lxml import etree

from epub_toc.core.archive import EpubArchive
from epub_toc.core.xmlutils import (
    children_named,
    first_child,
    local_name,
    parse_xml,
    text_content,
)
from epub_toc.errors import EpubParseError
from epub_toc.models.epub import BookMetadata, ManifestItem, PackageInfo

log = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
PACKAGE_MEDIA_TYPE = "application/oebps-package+xml"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def read_container(archive: EpubArchive) -> str:
    """Return the package document path declared in container.xml."""
    container = parse_xml(archive.read_bytes(CONTAINER_PATH), CONTAINER_PATH)

    rootfiles = [el for el in container.iter() if local_name(el) == "rootfile"]
    preferred = [el for el in rootfiles if el.get("media-type") == PACKAGE_MEDIA_TYPE]
    for el in preferred + rootfiles:
        full_path = el.get("full-path")
        if full_path:
            return full_path

    raise EpubParseError(CONTAINER_PATH, "no rootfile declared")


def parse_int(value: str | None) -> int | None:
    """Leading integer of an attribute value ("3.0" -> 3)."""
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def parse_package(data: bytes, path: str) -> PackageInfo:
    """Parse the package document into manifest, spine and metadata."""
    root = parse_xml(data, path)

    manifest_el = first_child(root, "manifest")
    spine_el = first_child(root, "spine")
    metadata_el = first_child(root, "metadata")

    if manifest_el is None:
        log.warning("%s has no <manifest>", path)
    if spine_el is None:
        log.warning("%s has no <spine>", path)

    return PackageInfo(
        version=parse_int(root.get("version")),
        manifest=_parse_manifest(manifest_el),
        spine=_parse_spine(spine_el),
        toc_id=spine_el.get("toc") if spine_el is not None else None,
        metadata=_parse_metadata(metadata_el),
    )


def _parse_manifest(manifest_el: etree._Element | None) -> list[ManifestItem]:
    if manifest_el is None:
        return []

    items: list[ManifestItem] = []
    seen: set[str] = set()
    for el in children_named(manifest_el, "item"):
        item_id = el.get("id")
        if not item_id:
            log.debug("Skipping manifest item without id: %s", el.get("href"))
            continue
        if item_id in seen:
            continue
        seen.add(item_id)
        items.append(
            ManifestItem(
                id=item_id,
                href=el.get("href"),
                media_type=el.get("media-type"),
                properties=el.get("properties"),
            )
        )
    return items


def _parse_spine(spine_el: etree._Element | None) -> list[str]:
    if spine_el is None:
        return []
    idrefs = (el.get("idref") for el in children_named(spine_el, "itemref"))
    # dict preserves first-seen order
    return list(dict.fromkeys(idref for idref in idrefs if idref))


def _parse_metadata(metadata_el: etree._Element | None) -> BookMetadata:
    if metadata_el is None:
        return BookMetadata()

    def first_text(name: str) -> str | None:
        el = first_child(metadata_el, name)
        if el is None:
            return None
        # creator may be compound (<dc:creator><name>..</name></dc:creator>)
        text = text_content(el).strip()
        return text or None

    return BookMetadata(
        title=first_text("title"),
        author=first_text("creator"),
        publisher=first_text("publisher"),
        language=first_text("language"),
    )
