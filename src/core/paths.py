# src/core/paths.py - v1
"""Path model for hierarchical document stores.

A path is a string of slash-separated segments. Odd segment counts address
collections ("users", "users/42/orders"), even counts address documents
("users/42").
"""

from __future__ import annotations

from firecache.core.errors import InvalidPathError

SEPARATOR = "/"


def normalize_path(path: str) -> str:
    """Strip surrounding slashes and reject empty paths or segments."""
    stripped = str(path).strip(SEPARATOR)
    if not stripped:
        raise InvalidPathError(path, "path is empty")
    if "" in stripped.split(SEPARATOR):
        raise InvalidPathError(path, "path contains an empty segment")
    return stripped


def segments(path: str) -> list[str]:
    return path.split(SEPARATOR)


def is_collection(path: str) -> bool:
    """True iff the path has an odd number of segments."""
    return len(segments(path)) % 2 == 1


def is_document(path: str) -> bool:
    return not is_collection(path)


def parent_collection_path(path: str) -> str:
    """Collection whose cached array mirrors this path.

    A collection path is its own parent; a document path drops its last
    segment.
    """
    if is_collection(path):
        return path
    return SEPARATOR.join(segments(path)[:-1])


def identifier(path: str) -> str:
    """Last segment of the path."""
    return segments(path)[-1]


def join_path(*parts: str) -> str:
    return SEPARATOR.join(p.strip(SEPARATOR) for p in parts)
