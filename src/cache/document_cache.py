# src/cache/document_cache.py - v2
"""Write-through cache in front of a hierarchical document store.

Two maps hold the cache state:

* live entries: document path -> document dict (always carrying the id
  field), collection path -> list of such dicts in store order;
* tombstones: paths known not to exist (collections: known to be empty).

A path is never in both maps. Reads of a tombstoned path return None
without contacting the store. Writes reach the store first; the maps are
only touched once the store call has succeeded. When a payload's stored
result cannot be computed locally (dotted field paths, server-side
sentinels) the affected entries are invalidated instead of updated.

Usage:
    cache = DocumentCache(MemoryBackingStore())
    await cache.set("users/42", {"name": "Ann"})
    user = await cache.get("users/42")   # {"name": "Ann", "_id": "42"}
"""

from __future__ import annotations

import contextlib
import copy
import logging
from collections.abc import Mapping
from typing import Any

from firecache.cache.eviction import EvictionTimer
from firecache.cache.models import CacheStats
from firecache.cache.path_locks import PathLocks
from firecache.core.deep_ops import deep_merge, omit_keys, shallow_assign, structural_equal
from firecache.core.errors import InvalidPathError, WriteError
from firecache.core.mutation import DEFAULT_MAX_DEPTH, contains_opaque_mutation
from firecache.core.paths import (
    identifier,
    is_collection,
    join_path,
    normalize_path,
    parent_collection_path,
)
from firecache.logging.context import operation_context
from firecache.storage.base_backing_store import BaseBackingStore

logger = logging.getLogger(__name__)

Document = dict[str, Any]


class DocumentCache:
    """Write-through document/collection cache with tombstones and idle eviction."""

    def __init__(
        self,
        store: BaseBackingStore,
        id_field: str = "_id",
        eviction_interval_s: float = 60.0,
        eviction_idle_threshold: int = 3,
        eviction_enabled: bool = True,
        opaque_max_depth: int = DEFAULT_MAX_DEPTH,
        path_locking: bool = True,
    ) -> None:
        """Initialize an empty cache.

        Args:
            store: Backing store every miss and write goes through.
            id_field: Synthetic field holding a document's id.
            eviction_interval_s: Seconds between eviction ticks.
            eviction_idle_threshold: Idle ticks before the timer stops.
            eviction_enabled: Disable to keep entries until clear_cache().
            opaque_max_depth: Payload nesting treated as opaque beyond this.
            path_locking: Serialise concurrent operations on the same path.
        """
        self._store = store
        self._id_field = id_field
        self._max_depth = opaque_max_depth
        self._entries: dict[str, Document | list[Document]] = {}
        self._tombstones: set[str] = set()
        self._stats = CacheStats()
        # Collection reads in flight and the writes that landed meanwhile
        self._listings_in_flight = 0
        self._write_clock = 0
        self._written: dict[str, int] = {}
        self._locks = PathLocks() if path_locking else None
        self._timer = EvictionTimer(
            evict=self._evict_all,
            is_empty=self.is_empty,
            interval_s=eviction_interval_s,
            idle_threshold=eviction_idle_threshold,
            enabled=eviction_enabled,
        )

    # --- public API ---

    async def get(self, path: str, force_refresh: bool = False) -> Any:
        """Return a document dict, a list of documents, or None if absent.

        Args:
            path: Document or collection path.
            force_refresh: Re-read from the store even if cached. A
                tombstoned path still answers None without a read.
        """
        self._timer.touch()
        path = normalize_path(path)
        with operation_context("get", path):
            async with self._hold(path):
                return await self._read(path, force_refresh)

    async def add(
        self, collection_path: str, data: Mapping[str, Any], fetch: bool = False
    ) -> list[Document] | None:
        """Create a document with a generated id in a collection.

        Returns:
            None, or the collection listing when ``fetch`` is set.

        Raises:
            InvalidPathError: If ``collection_path`` is a document path.
            WriteError: If the store rejects the write.
        """
        self._timer.touch()
        collection_path = normalize_path(collection_path)
        if not is_collection(collection_path):
            raise InvalidPathError(collection_path, "add expects a collection path")

        with operation_context("add", collection_path):
            opaque = self._is_opaque(data)
            async with self._hold(collection_path):
                doc_id = await self._store.add_document(
                    collection_path, self._payload(data)
                )
                self._stats.backing_writes += 1
                self._note_write(collection_path)
                self._tombstones.discard(collection_path)
                doc_path = join_path(collection_path, doc_id)
                logger.debug("Added %s", doc_path)

                if opaque:
                    self._invalidate(collection_path)
                else:
                    document = self._with_id(data, doc_id)
                    listing = self._entries.get(collection_path)
                    if isinstance(listing, list):
                        listing.append(copy.deepcopy(document))
                    self._put(doc_path, document)

        if fetch:
            return await self.get(collection_path)
        return None

    async def set(
        self,
        path: str,
        data: Mapping[str, Any],
        merge: bool = False,
        fetch: bool = False,
    ) -> Document | None:
        """Write a document, replacing it or merging into it.

        A locally computable write whose result equals the cached document
        is skipped and the cached document is returned.

        Returns:
            The cached document for an elided write, the re-read document
            when ``fetch`` is set, otherwise None. Collection paths are
            ignored and return None.

        Raises:
            WriteError: If the store rejects the write.
        """
        self._timer.touch()
        path = normalize_path(path)
        if is_collection(path):
            logger.debug("set ignored for collection path %s", path)
            return None

        parent = parent_collection_path(path)
        with operation_context("set", path):
            opaque = self._is_opaque(data)
            async with self._hold(path):
                cached = self._cached_document(path)
                if not opaque and cached is not None:
                    final = self._apply(cached, data, path, merge)
                    if structural_equal(cached, final):
                        self._stats.elided_writes += 1
                        logger.debug("set elided, document unchanged")
                        return copy.deepcopy(cached)

                await self._store.write_document(path, self._payload(data), merge=merge)
                self._stats.backing_writes += 1
                self._note_write(parent)
                self._tombstones.discard(path)
                self._tombstones.discard(parent)

                if opaque:
                    self._invalidate(path)
                    self._invalidate(parent)
                else:
                    cached = self._cached_document(path)
                    if cached is not None:
                        final = self._apply(cached, data, path, merge)
                    elif not merge:
                        final = self._with_id(data, identifier(path))
                    else:
                        # Merging onto an unknown document: result unknown
                        final = None

                    if final is None:
                        self._invalidate(parent)
                    else:
                        self._put(path, final)
                        self._sync_parent(path, final, append=True)

        if fetch:
            return await self.get(path)
        return None

    async def update(
        self, path: str, data: Mapping[str, Any], fetch: bool = False
    ) -> Document | None:
        """Patch top-level fields of an existing document.

        Best effort: a rejected update is logged and answered with None
        instead of raising.

        Returns:
            The cached document for an elided update, the re-read document
            when ``fetch`` is set, otherwise None.
        """
        self._timer.touch()
        path = normalize_path(path)
        if is_collection(path):
            logger.debug("update ignored for collection path %s", path)
            return None

        parent = parent_collection_path(path)
        with operation_context("update", path):
            opaque = self._is_opaque(data)
            async with self._hold(path):
                cached = self._cached_document(path)
                if not opaque and cached is not None:
                    final = self._apply(cached, data, path, merge=False)
                    if structural_equal(cached, final):
                        self._stats.elided_writes += 1
                        logger.debug("update elided, document unchanged")
                        return copy.deepcopy(cached)

                try:
                    await self._store.update_document(path, self._payload(data))
                except WriteError as e:
                    self._stats.failed_updates += 1
                    logger.warning("Update of %s failed: %s", path, e)
                    return None
                self._stats.backing_writes += 1
                self._note_write(parent)
                self._tombstones.discard(path)
                self._tombstones.discard(parent)

                if opaque:
                    self._invalidate(path)
                    self._invalidate(parent)
                else:
                    cached = self._cached_document(path)
                    if cached is not None:
                        final = self._apply(cached, data, path, merge=False)
                        self._put(path, final)
                        self._sync_parent(path, final, append=False)
                    else:
                        self._patch_parent_element(path, data)

        if fetch:
            return await self.get(path)
        return None

    async def delete(self, path: str) -> None:
        """Delete a document and remember it as absent.

        Raises:
            WriteError: If the store rejects the delete.
        """
        self._timer.touch()
        path = normalize_path(path)
        if is_collection(path):
            logger.debug("delete ignored for collection path %s", path)
            return None

        with operation_context("delete", path):
            async with self._hold(path):
                await self._store.delete_document(path)
                self._stats.backing_writes += 1
                self._note_write(parent_collection_path(path))
                self._remove_from_parent(path)
                self._mark_absent(path)
                logger.debug("Deleted and tombstoned")
        return None

    def clear_cache(self) -> None:
        """Drop every live entry and tombstone."""
        self._entries.clear()
        self._tombstones.clear()
        self._stats.clears += 1
        logger.debug("Cache cleared")

    # --- introspection ---

    def is_empty(self) -> bool:
        return not self._entries and not self._tombstones

    def is_cached(self, path: str) -> bool:
        return normalize_path(path) in self._entries

    def is_tombstoned(self, path: str) -> bool:
        return normalize_path(path) in self._tombstones

    def stats(self) -> CacheStats:
        return self._stats.model_copy(
            update={"entries": len(self._entries), "tombstones": len(self._tombstones)}
        )

    @property
    def eviction_timer(self) -> EvictionTimer:
        return self._timer

    @property
    def store(self) -> BaseBackingStore:
        return self._store

    async def aclose(self) -> None:
        """Stop the eviction timer and close the backing store."""
        await self._timer.aclose()
        await self._store.aclose()

    async def __aenter__(self) -> DocumentCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- read path ---

    async def _read(self, path: str, force_refresh: bool) -> Any:
        if path in self._tombstones:
            self._stats.tombstone_hits += 1
            logger.debug("Known absent")
            return None

        if not force_refresh and path in self._entries:
            self._stats.hits += 1
            logger.debug("Cache hit")
            return copy.deepcopy(self._entries[path])

        self._stats.misses += 1
        self._stats.backing_reads += 1
        logger.debug("Cache miss, reading from store")

        if is_collection(path):
            started = self._write_clock
            self._listings_in_flight += 1
            try:
                rows = await self._store.read_collection(path)
            finally:
                self._listings_in_flight -= 1
                raced = self._written.get(path, 0) > started
                if not self._listings_in_flight:
                    self._written.clear()

            listing = [self._with_id(fields, doc_id) for doc_id, fields in rows]
            if raced:
                # A member write landed while the store was answering; the
                # listing may predate it and must not override the cache.
                logger.debug("Listing raced with a member write, not cached")
                return listing or None
            if not listing:
                self._mark_absent(path)
                return None
            self._put(path, listing)
            self._refresh_members(path, listing)
            return copy.deepcopy(listing)

        fields = await self._store.read_document(path)
        if fields is None:
            self._remove_from_parent(path)
            self._mark_absent(path)
            return None
        document = self._with_id(fields, identifier(path))
        self._put(path, document)
        self._sync_parent(path, document, append=True)
        return copy.deepcopy(document)

    def _refresh_members(self, collection_path: str, listing: list[Document]) -> None:
        """Bring cached member documents in line with a fresh listing."""
        listed = set()
        for document in listing:
            doc_path = join_path(collection_path, document[self._id_field])
            listed.add(doc_path)
            self._tombstones.discard(doc_path)
            if doc_path in self._entries:
                self._entries[doc_path] = copy.deepcopy(document)

        stale = [
            doc_path
            for doc_path in self._entries
            if not is_collection(doc_path)
            and parent_collection_path(doc_path) == collection_path
            and doc_path not in listed
        ]
        for doc_path in stale:
            self._invalidate(doc_path)

    def _note_write(self, collection_path: str) -> None:
        """Record a member write for collection reads still awaiting the store."""
        if self._listings_in_flight:
            self._write_clock += 1
            self._written[collection_path] = self._write_clock

    # --- map helpers ---

    def _put(self, path: str, value: Document | list[Document]) -> None:
        self._tombstones.discard(path)
        self._entries[path] = copy.deepcopy(value)

    def _mark_absent(self, path: str) -> None:
        self._entries.pop(path, None)
        self._tombstones.add(path)

    def _invalidate(self, path: str) -> None:
        if self._entries.pop(path, None) is not None:
            self._stats.invalidations += 1
            logger.info("Invalidated %s", path)

    def _evict_all(self) -> None:
        logger.info(
            "Evicting %d entries and %d tombstones",
            len(self._entries),
            len(self._tombstones),
        )
        self.clear_cache()

    def _cached_document(self, path: str) -> Document | None:
        value = self._entries.get(path)
        return value if isinstance(value, dict) else None

    # --- parent collection sync ---

    def _index_in(self, listing: list[Document], doc_id: str) -> int | None:
        for index, document in enumerate(listing):
            if document.get(self._id_field) == doc_id:
                return index
        return None

    def _sync_parent(self, path: str, document: Document, append: bool) -> None:
        listing = self._entries.get(parent_collection_path(path))
        if not isinstance(listing, list):
            return
        index = self._index_in(listing, identifier(path))
        if index is None:
            if append:
                listing.append(copy.deepcopy(document))
        elif not structural_equal(listing[index], document):
            listing[index] = copy.deepcopy(document)

    def _patch_parent_element(self, path: str, data: Mapping[str, Any]) -> None:
        listing = self._entries.get(parent_collection_path(path))
        if not isinstance(listing, list):
            return
        index = self._index_in(listing, identifier(path))
        if index is not None:
            listing[index] = self._apply(listing[index], data, path, merge=False)

    def _remove_from_parent(self, path: str) -> None:
        parent = parent_collection_path(path)
        listing = self._entries.get(parent)
        if not isinstance(listing, list):
            return
        index = self._index_in(listing, identifier(path))
        if index is None:
            return
        del listing[index]
        if not listing:
            self._mark_absent(parent)

    # --- value computation ---

    def _is_opaque(self, data: Mapping[str, Any]) -> bool:
        if not isinstance(data, Mapping):
            raise TypeError(f"Document data must be a mapping, got {type(data).__name__}")
        return contains_opaque_mutation(data, self._store.is_opaque_sentinel, self._max_depth)

    def _apply(
        self, base: Document, data: Mapping[str, Any], path: str, merge: bool
    ) -> Document:
        """Value a locally computable write turns ``base`` into."""
        id_patch = {self._id_field: identifier(path)}
        if merge:
            return deep_merge({}, copy.deepcopy(base), copy.deepcopy(data), id_patch)
        return shallow_assign({}, copy.deepcopy(base), copy.deepcopy(data), id_patch)

    def _with_id(self, fields: Mapping[str, Any], doc_id: str) -> Document:
        return shallow_assign({}, copy.deepcopy(dict(fields)), {self._id_field: doc_id})

    def _payload(self, data: Mapping[str, Any]) -> Document:
        return omit_keys(data, [self._id_field])

    def _hold(self, path: str) -> Any:
        if self._locks is None:
            return contextlib.nullcontext()
        return self._locks.hold(path)
