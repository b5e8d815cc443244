"""Cache management with hash/mtime invalidation."""

import hashlib
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from epub_toc.cache.models import CachedParse, CacheIndex, CacheMetadata
from epub_toc.core.epub_parser import ParsedEpub
from epub_toc.models.options import ParserOptions

log = logging.getLogger(__name__)


class CacheManager:
    """Manages caching of parsed EPUB records."""

    CACHE_DIR = ".epub_toc_cache"
    INDEX_FILE = "index.json"
    RECORD_FILE = "parse.json"
    CACHE_VERSION = "1.0"

    def __init__(self, project_dir: Path):
        self.cache_root = project_dir / self.CACHE_DIR
        self.index_path = self.cache_root / self.INDEX_FILE
        self._index: CacheIndex | None = None

    def _ensure_cache_dir(self) -> None:
        """Create cache directory if it doesn't exist."""
        self.cache_root.mkdir(parents=True, exist_ok=True)

    def _load_index(self) -> CacheIndex:
        """Load or create cache index."""
        if self._index is not None:
            return self._index

        if self.index_path.exists():
            try:
                data = json.loads(self.index_path.read_text())
                self._index = CacheIndex.model_validate(data)
            except (json.JSONDecodeError, ValidationError):
                log.warning("Cache index %s is corrupt, starting fresh", self.index_path)
                self._index = CacheIndex()
        else:
            self._index = CacheIndex()

        return self._index

    def _save_index(self) -> None:
        """Save cache index to disk."""
        self._ensure_cache_dir()
        index = self._load_index()
        self.index_path.write_text(index.model_dump_json(indent=2))

    def _record_file(self, file_hash: str) -> Path:
        return self.cache_root / "books" / file_hash / self.RECORD_FILE

    def get_file_hash(self, file_path: Path) -> str:
        """Compute SHA-256 hash of a file."""
        sha256 = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    def _read_cached(self, cache_file: Path) -> CachedParse | None:
        try:
            return CachedParse.model_validate_json(cache_file.read_text())
        except (OSError, ValidationError):
            return None

    def is_cache_valid(self, file_path: Path, options: ParserOptions | None = None) -> bool:
        """Check if cached data exists and is still valid."""
        if not self.cache_root.exists():
            return False

        index = self._load_index()
        path_key = str(file_path.resolve())

        if path_key not in index.entries:
            return False

        cache_file = self._record_file(index.entries[path_key])
        if not cache_file.exists():
            return False

        cached = self._read_cached(cache_file)
        if cached is None:
            return False
        if cached.cache_metadata.cache_version != self.CACHE_VERSION:
            return False
        if cached.options != (options or ParserOptions()):
            return False

        stat = file_path.stat()

        # Fast path: check mtime and size first
        if (
            cached.cache_metadata.file_mtime == stat.st_mtime
            and cached.cache_metadata.file_size == stat.st_size
        ):
            return True

        # Slow path: mtime changed, verify with hash
        current_hash = self.get_file_hash(file_path)
        if cached.cache_metadata.file_hash == current_hash:
            # File unchanged, update mtime in cache
            cached.cache_metadata.file_mtime = stat.st_mtime
            cache_file.write_text(cached.model_dump_json(indent=2))
            return True

        return False

    def get_cached_record(
        self, file_path: Path, options: ParserOptions | None = None
    ) -> dict | None:
        """Retrieve the cached parse record if valid."""
        if not self.is_cache_valid(file_path, options):
            return None

        index = self._load_index()
        cached = self._read_cached(self._record_file(index.entries[str(file_path.resolve())]))
        return cached.record if cached else None

    def save_record(
        self, file_path: Path, parsed: ParsedEpub, options: ParserOptions | None = None
    ) -> None:
        """Save a parse result to cache."""
        stat = file_path.stat()
        file_hash = self.get_file_hash(file_path)

        cache_metadata = CacheMetadata(
            file_path=str(file_path.resolve()),
            file_hash=file_hash,
            file_size=stat.st_size,
            file_mtime=stat.st_mtime,
            cached_at=datetime.now(),
            cache_version=self.CACHE_VERSION,
        )
        cached = CachedParse(
            cache_metadata=cache_metadata,
            options=options or ParserOptions(),
            record=parsed.to_record(),
        )

        cache_file = self._record_file(file_hash)
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        cache_file.write_text(cached.model_dump_json(indent=2))

        # Update index
        index = self._load_index()
        index.entries[str(file_path.resolve())] = file_hash
        self._save_index()

    def clear_cache(self) -> int:
        """Clear all cached data. Returns number of entries cleared."""
        if not self.cache_root.exists():
            return 0

        books_dir = self.cache_root / "books"
        if books_dir.exists():
            count = len(list(books_dir.iterdir()))
        else:
            count = 0

        shutil.rmtree(self.cache_root)
        self._index = None
        return count

    def list_cached(self) -> list[tuple[str, str]]:
        """List all cached EPUBs. Returns list of (path, hash)."""
        index = self._load_index()
        return list(index.entries.items())
