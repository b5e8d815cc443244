"""Data models for export output."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class NodeMetadata(BaseModel):
    """Metadata accompanying a TOC node's content."""

    node_index: int
    title: str
    depth: int = 0
    play_order: int | None = None
    section_id: str | None = None
    node_id: str | None = None
    source_file: str | None = None
    source_path: str
    extracted_at: datetime = Field(default_factory=datetime.now)
    word_count: int
    character_count: int
    paragraph_count: int


class NodeOutput(BaseModel):
    """Content of a single TOC node."""

    metadata: NodeMetadata
    content: str
    format: Literal["markdown", "text", "html"] = "markdown"


class BookOutput(BaseModel):
    """Complete book output manifest."""

    book_title: str | None = None
    author: str | None = None
    publisher: str | None = None
    total_nodes: int
    total_sections: int
    toc_path: str | None = None
    output_directory: str
    created_at: datetime = Field(default_factory=datetime.now)
    nodes: list[NodeMetadata]
