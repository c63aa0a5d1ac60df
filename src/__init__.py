# src/__init__.py - v1
"""firecache: write-through cache for hierarchical document stores."""

from firecache.cache.cache_factory import create_document_cache
from firecache.cache.document_cache import DocumentCache
from firecache.core.errors import FirecacheError, InvalidPathError, WriteError
from firecache.version import __version__

__all__ = [
    "DocumentCache",
    "FirecacheError",
    "InvalidPathError",
    "WriteError",
    "create_document_cache",
    "__version__",
]
