"""Cache data models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from epub_toc.models.options import ParserOptions


class CacheMetadata(BaseModel):
    """Metadata for cache invalidation."""

    file_path: str  # Path to source EPUB
    file_hash: str
    file_size: int
    file_mtime: float
    cached_at: datetime = Field(default_factory=datetime.now)
    cache_version: str = "1.0"


class CachedParse(BaseModel):
    """Serialized parse result of an EPUB file."""

    cache_metadata: CacheMetadata
    options: ParserOptions = Field(default_factory=ParserOptions)
    record: dict[str, Any]


class CacheIndex(BaseModel):
    """Index mapping file paths to cache entries."""

    entries: dict[str, str] = Field(default_factory=dict)  # path -> hash
