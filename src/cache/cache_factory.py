# src/cache/cache_factory.py - v3
"""Factory for document cache instantiation."""

from __future__ import annotations

from firecache.cache.document_cache import DocumentCache
from firecache.config.settings import Settings
from firecache.storage.base_backing_store import BaseBackingStore


def create_document_cache(
    settings: Settings | None = None,
    backing_store: BaseBackingStore | None = None,
) -> DocumentCache:
    """Build a DocumentCache wired to the configured backing store.

    Args:
        settings: Application settings. Defaults are used if None.
        backing_store: Store to wrap. Built from settings if None.

    Returns:
        Configured DocumentCache. It owns the store: aclose() closes both.
    """
    if settings is None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]

    if backing_store is None:
        from firecache.storage.store_factory import create_backing_store

        backing_store = create_backing_store(settings)

    return DocumentCache(
        backing_store,
        id_field=settings.cache_id_field,
        eviction_interval_s=settings.eviction_interval_s,
        eviction_idle_threshold=settings.eviction_idle_threshold,
        eviction_enabled=settings.eviction_enabled,
        opaque_max_depth=settings.opaque_max_depth,
        path_locking=settings.path_locking,
    )
