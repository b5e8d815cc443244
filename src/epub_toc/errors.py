"""Errors raised while reading an EPUB container."""


class EpubError(Exception):
    """Base class for EPUB parsing failures."""


class NotFoundError(EpubError):
    """A referenced path is missing from the archive."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} not found!")


class EpubParseError(EpubError):
    """A document expected to be well-formed could not be parsed."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
