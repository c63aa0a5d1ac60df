# tests/integration/conftest.py - v8
"""Shared fixtures for integration tests.

Scenarios run against MemoryBackingStore, which applies the same replace,
merge and field-path semantics as Firestore without a network. Tests that
need a real Firestore project are marked ``firestore`` and skipped unless
FIRECACHE_FIRESTORE_PROJECT is set.

Changelog:
    v8: Document-cache scenarios over the in-memory store.
"""

from __future__ import annotations

import os

import pytest

from firecache.cache.cache_factory import create_document_cache
from firecache.config.settings import Settings
from firecache.storage.memory_store import MemoryBackingStore


def pytest_configure(config):
    config.addinivalue_line("markers", "firestore: marks tests requiring a Firestore project")


def pytest_collection_modifyitems(config, items):
    if os.environ.get("FIRECACHE_FIRESTORE_PROJECT"):
        return
    skip = pytest.mark.skip(reason="FIRECACHE_FIRESTORE_PROJECT not set")
    for item in items:
        if "firestore" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def store() -> MemoryBackingStore:
    return MemoryBackingStore()


@pytest.fixture
def cache(store):
    return create_document_cache(
        Settings(_env_file=None, eviction_enabled=False), backing_store=store
    )
