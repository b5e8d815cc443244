"""Resolve archive paths relative to the package document."""

import posixpath


def resolve_root(package_doc_path: str) -> str:
    """Return the directory holding the package document.

    The result always ends with ``/`` and never starts with one, so it can be
    prefixed directly onto relative hrefs. A top-level package document yields
    an empty root.
    """
    if "/" not in package_doc_path:
        return ""
    root = package_doc_path.rsplit("/", 1)[0]
    if not root.endswith("/"):
        root += "/"
    return root.lstrip("/")


def resolve_path(path: str, root: str) -> str:
    """Resolve an href against ``root``, or the archive root if absolute."""
    if path.startswith("/"):
        resolved = path[1:]
    else:
        resolved = root + path
    if not resolved:
        return resolved
    normalized = posixpath.normpath(resolved)
    return "" if normalized == "." else normalized
