"""Data models for EPUB structure."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ManifestItem(BaseModel):
    """Single item declared in the package manifest."""

    model_config = ConfigDict(frozen=True)

    id: str
    href: str | None = None
    media_type: str | None = None
    properties: str | None = None

    def has_property(self, name: str) -> bool:
        return name in (self.properties or "").split()


class BookMetadata(BaseModel):
    """Book-level metadata."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    author: str | None = None
    publisher: str | None = None
    language: str | None = None


class PackageInfo(BaseModel):
    """Parsed package document: manifest, spine and metadata."""

    model_config = ConfigDict(frozen=True)

    version: int | None = None
    manifest: list[ManifestItem] = Field(default_factory=list)
    spine: list[str] = Field(default_factory=list)
    toc_id: str | None = None
    metadata: BookMetadata = Field(default_factory=BookMetadata)

    def get_item(self, item_id: str) -> ManifestItem | None:
        """Look up a manifest item by id."""
        for item in self.manifest:
            if item.id == item_id:
                return item
        return None

    def find_by_property(self, name: str) -> ManifestItem | None:
        """Return the first manifest item carrying the given property."""
        for item in self.manifest:
            if item.has_property(name):
                return item
        return None


class TocNode(BaseModel):
    """Single entry in the table of contents.

    Nodes are immutable; every processing phase (path resolution,
    segmentation) builds a new tree with ``model_copy``.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: str
    path: str
    section_id: str | None = None
    node_id: str | None = None
    next_node_id: str | None = None
    play_order: int | None = None
    children: list[TocNode] = Field(default_factory=list)
    file_path: str | None = None
    content: str | None = None
    markdown_content: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Serialize to a plain camelCase dict, omitting absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TocNode:
        return cls.model_validate(record)

    def iter_nodes(self):
        """Yield this node and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()


class HtmlNode(BaseModel):
    """Structural view of a section's HTML (type 1: element, 3: text)."""

    type: Literal[1, 3]
    tag: str | None = None
    text: str | None = None
    attrs: dict[str, str] = Field(default_factory=dict)
    children: list[HtmlNode] = Field(default_factory=list)
