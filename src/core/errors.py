# src/core/errors.py - v1
"""Exception taxonomy for the document cache.

A missing document is never an exception: reads return None and record a
tombstone. Only malformed input and rejected backing-store writes raise.
"""

from __future__ import annotations


class FirecacheError(Exception):
    """Base class for all firecache errors."""


class InvalidPathError(FirecacheError, ValueError):
    """Raised when a path is empty, has empty segments, or has the wrong kind."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")


class WriteError(FirecacheError):
    """The backing store rejected a write, update, add or delete."""

    def __init__(self, path: str, operation: str, cause: Exception | None = None):
        self.path = path
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed for {path!r}{detail}")
