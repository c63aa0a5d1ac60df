# src/storage/store_factory.py - v1
"""Factory: instantiate the backing store from configuration."""

from __future__ import annotations

from firecache.config.settings import Settings
from firecache.storage.base_backing_store import BaseBackingStore
from firecache.storage.memory_store import MemoryBackingStore


def create_backing_store(settings: Settings | None = None) -> BaseBackingStore:
    """Create the backing store named by FIRECACHE_BACKING_STORE.

    Args:
        settings: Application settings. Defaults to the in-memory store.

    Returns:
        BaseBackingStore instance.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = "memory" if settings is None else settings.backing_store

    if backend == "memory":
        return MemoryBackingStore()

    if backend == "firestore":
        from firecache.storage.firestore_store import FirestoreBackingStore

        return FirestoreBackingStore(
            project=settings.firestore_project or None,
            database=settings.firestore_database or None,
            credentials_file=settings.firestore_credentials_file,
        )

    raise ValueError(f"Unsupported backing store: {backend!r}")
