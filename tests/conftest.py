# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Every fixture runs against the in-memory backing store; no network access.
Caches built here have the eviction timer disabled so no background task
outlives a test. Eviction tests build their own caches.
"""

from __future__ import annotations

import logging

import pytest

from firecache.cache.document_cache import DocumentCache
from firecache.config.settings import Settings
from firecache.logging.context import clear_context
from firecache.storage.memory_store import MemoryBackingStore


# === FIXTURES: Seed data ===


@pytest.fixture
def seed_documents() -> dict[str, dict]:
    """Two users with a nested address, one order sub-collection entry."""
    return {
        "users/42": {"name": "Ann", "age": 31, "address": {"city": "Oslo", "zip": "0150"}},
        "users/43": {"name": "Bob", "age": 27, "tags": ["admin"]},
        "users/42/orders/o1": {"total": 12.5},
    }


@pytest.fixture
def memory_store(seed_documents: dict[str, dict]) -> MemoryBackingStore:
    """MemoryBackingStore seeded with sample documents."""
    return MemoryBackingStore(seed_documents)


@pytest.fixture
def empty_store() -> MemoryBackingStore:
    return MemoryBackingStore()


@pytest.fixture
def cache(memory_store: MemoryBackingStore) -> DocumentCache:
    """DocumentCache over the seeded store, eviction disabled."""
    return DocumentCache(memory_store, eviction_enabled=False)


@pytest.fixture
def empty_cache(empty_store: MemoryBackingStore) -> DocumentCache:
    return DocumentCache(empty_store, eviction_enabled=False)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging() so they never outlive a test."""
    yield
    root = logging.getLogger("firecache")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
