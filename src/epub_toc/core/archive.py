"""Read-only access to the files inside an EPUB container."""

import io
import logging
import warnings
import zipfile
from functools import cached_property
from urllib.parse import unquote

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from epub_toc.errors import EpubParseError, NotFoundError

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)


def decode_text(data: bytes) -> str:
    """Decode document bytes, tolerating a BOM and stray legacy bytes."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


class FileHandle:
    """A single archive member with a memoized DOM."""

    def __init__(self, path: str, data: bytes):
        self.path = path
        self.data = data

    @cached_property
    def text(self) -> str:
        return decode_text(self.data)

    @cached_property
    def soup(self) -> BeautifulSoup:
        """Parsed DOM, built once per file."""
        return BeautifulSoup(self.data, "lxml")


class EpubArchive:
    """Path to bytes lookup over a zip archive."""

    def __init__(self, data: bytes):
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise EpubParseError("<archive>", f"not a zip archive: {e}") from e
        self._names = {
            name: name for name in self._zip.namelist() if not name.endswith("/")
        }
        self._folded = {name.lower(): name for name in reversed(list(self._names))}
        self._handles: dict[str, FileHandle] = {}

    def _lookup(self, path: str) -> str | None:
        """Map a requested path to the stored member name."""
        for candidate in (path, unquote(path)):
            if candidate in self._names:
                return candidate
        return self._folded.get(unquote(path).lower())

    def has(self, path: str) -> bool:
        return self._lookup(path) is not None

    def read_bytes(self, path: str) -> bytes:
        name = self._lookup(path)
        if name is None:
            raise NotFoundError(path)
        return self._zip.read(name)

    def read_text(self, path: str) -> str:
        return decode_text(self.read_bytes(path))

    def file(self, path: str) -> FileHandle:
        """Return the memoized handle for ``path``."""
        name = self._lookup(path)
        if name is None:
            raise NotFoundError(path)
        handle = self._handles.get(name)
        if handle is None:
            log.debug("Loading %s", name)
            handle = FileHandle(name, self._zip.read(name))
            self._handles[name] = handle
        return handle
