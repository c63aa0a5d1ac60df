# tests/integration/cache/test_int_document_cache.py - v1
"""End-to-end cache behaviour over the in-memory store.

Each scenario drives the public API only and checks both what the caller
sees and what reached the store.
"""

from __future__ import annotations

import asyncio

import pytest

from firecache.cache.document_cache import DocumentCache
from firecache.storage.memory_store import MemoryBackingStore
from firecache.storage.transforms import ArrayUnion


class TestScenarios:
    @pytest.mark.asyncio
    async def test_set_then_identical_update(self, cache, store):
        await cache.set("users/42", {"name": "Ann"})
        assert store.call_count() == 1
        assert await cache.get("users/42") == {"name": "Ann", "_id": "42"}

        assert await cache.update("users/42", {"name": "Ann"}) == {"name": "Ann", "_id": "42"}
        assert store.call_count() == 1

    @pytest.mark.asyncio
    async def test_delete_then_reads_never_reach_store(self, cache, store):
        await cache.set("users/42", {"name": "Ann"})
        await cache.delete("users/42")
        store.reset_calls()
        for _ in range(3):
            assert await cache.get("users/42") is None
        assert store.call_count() == 0

    @pytest.mark.asyncio
    async def test_collection_stays_coherent_through_writes(self, cache, store):
        await cache.set("users/1", {"name": "Ann", "roles": ["dev"]})
        await cache.set("users/2", {"name": "Bob"})
        users = await cache.get("users")
        assert [u["_id"] for u in users] == ["1", "2"]

        await cache.update("users/1", {"name": "Ann B"})
        await cache.set("users/2", {"profile": {"lang": "en"}}, merge=True)
        await cache.add("users", {"name": "Cy"})
        await cache.delete("users/1")

        cached = await cache.get("users")
        fresh = await cache.get("users", force_refresh=True)
        assert cached == fresh
        assert len(fresh) == 2

    @pytest.mark.asyncio
    async def test_opaque_writes_fall_back_to_store(self, cache, store):
        await cache.set("users/1", {"name": "Ann", "roles": ["dev"]})
        await cache.get("users")
        await cache.update("users/1", {"roles": ArrayUnion(["ops"])})

        doc = await cache.get("users/1")
        assert doc["roles"] == ["dev", "ops"]
        listing = await cache.get("users")
        assert listing[0] == doc

    @pytest.mark.asyncio
    async def test_round_trip_with_fetch(self, cache, store):
        await cache.set("users/1", {"name": "Ann", "address": {"city": "Oslo"}})
        result = await cache.set("users/1", {"address": {"zip": "0150"}}, merge=True, fetch=True)
        assert result == await cache.get("users/1", force_refresh=True)

    @pytest.mark.asyncio
    async def test_add_to_cached_collection_grows_by_one(self, cache, store):
        await cache.set("teams/a", {"name": "A"})
        before = await cache.get("teams")
        await cache.add("teams", {"name": "B"})
        after = await cache.get("teams")
        assert len(after) == len(before) + 1
        generated = after[-1]["_id"]
        assert store.snapshot(f"teams/{generated}") == {"name": "B"}

    @pytest.mark.asyncio
    async def test_nested_subcollection_paths(self, cache, store):
        await cache.set("users/1/orders/o1", {"total": 10})
        assert await cache.get("users/1/orders") == [{"total": 10, "_id": "o1"}]
        assert await cache.get("users") is None

    @pytest.mark.asyncio
    async def test_read_through_seeded_store(self):
        store = MemoryBackingStore({
            "users/42": {"name": "Ann", "address": {"city": "Oslo"}},
            "users/43": {"name": "Bob"},
        })
        cache = DocumentCache(store, eviction_enabled=False)

        users = await cache.get("users")
        assert {u["_id"] for u in users} == {"42", "43"}
        await cache.set("users/42", {"address": {"zip": "0150"}}, merge=True)

        store.reset_calls()
        ann = await cache.get("users/42")
        listing = await cache.get("users")
        assert store.call_count() == 0
        assert ann["address"] == {"city": "Oslo", "zip": "0150"}
        assert listing[0] == ann


class TestIdleEviction:
    @pytest.mark.asyncio
    async def test_entries_evicted_then_timer_stops(self):
        store = MemoryBackingStore({"users/42": {"name": "Ann"}})
        cache = DocumentCache(store, eviction_interval_s=0.01, eviction_idle_threshold=1)
        try:
            await cache.get("users/42")
            assert cache.is_cached("users/42")

            for _ in range(200):
                if not cache.eviction_timer.is_running:
                    break
                await asyncio.sleep(0.01)

            assert cache.is_empty()
            assert not cache.eviction_timer.is_running

            store.reset_calls()
            await cache.get("users/42")
            assert store.call_count("read_document") == 1
            assert cache.eviction_timer.is_running
        finally:
            await cache.aclose()


@pytest.mark.firestore
class TestLiveFirestore:
    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        from firecache.config.settings import load_settings
        from firecache.storage.store_factory import create_backing_store

        settings = load_settings(backing_store="firestore", eviction_enabled=False)
        cache = DocumentCache(create_backing_store(settings), eviction_enabled=False)
        async with cache:
            path = "firecache_it/doc1"
            await cache.set(path, {"n": 1})
            assert await cache.get(path, force_refresh=True) == {"n": 1, "_id": "doc1"}
            await cache.delete(path)
            assert await cache.get(path) is None
