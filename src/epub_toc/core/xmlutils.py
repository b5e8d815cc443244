"""Namespace-agnostic helpers over lxml element trees."""

from collections.abc import Iterator

from lxml import etree

from epub_toc.errors import EpubParseError

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def parse_xml(data: bytes, path: str) -> etree._Element:
    """Parse a well-formed XML document or raise EpubParseError."""
    try:
        root = etree.fromstring(data, _PARSER)
    except etree.XMLSyntaxError as e:
        raise EpubParseError(path, str(e)) from e
    if root is None:
        raise EpubParseError(path, "empty document")
    return root


def local_name(el: etree._Element) -> str:
    """Tag name without its namespace; "" for comments and PIs."""
    tag = el.tag
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname


def children_named(el: etree._Element, name: str) -> Iterator[etree._Element]:
    for child in el:
        if local_name(child) == name:
            yield child


def first_child(el: etree._Element, name: str) -> etree._Element | None:
    return next(children_named(el, name), None)


def get_attr(el: etree._Element, name: str) -> str | None:
    """Attribute lookup ignoring the attribute's namespace."""
    value = el.get(name)
    if value is not None:
        return value
    for key, value in el.attrib.items():
        if etree.QName(key).localname == name:
            return value
    return None


def text_content(el: etree._Element) -> str:
    return "".join(el.itertext())
