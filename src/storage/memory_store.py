# src/storage/memory_store.py - v1
"""In-process backing store (default FIRECACHE_BACKING_STORE=memory).

Keeps documents in a dict keyed by path and applies the same write
semantics as a remote document store: replace or merge writes, field-path
updates, server-side transforms. Every call is recorded in ``calls`` so
callers can see exactly what reached the store.
"""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Any

from firecache.core.errors import WriteError
from firecache.core.paths import identifier, is_collection, join_path, parent_collection_path
from firecache.storage.base_backing_store import BaseBackingStore
from firecache.storage.transforms import (
    apply_field,
    apply_field_path,
    is_transform,
    merge_fields,
)

logger = logging.getLogger(__name__)


class MemoryBackingStore(BaseBackingStore):
    """Dict-backed document store for local development and tests."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        """Initialize with optional seed documents.

        Args:
            documents: Mapping of document path to fields.
        """
        self._docs: dict[str, dict[str, Any]] = {}
        for path, fields in (documents or {}).items():
            self._docs[path] = copy.deepcopy(fields)
        self.calls: list[tuple[str, str]] = []
        self.failing_paths: set[str] = set()

    # --- introspection ---

    def call_count(self, operation: str | None = None) -> int:
        """Number of recorded calls, optionally for one operation name."""
        if operation is None:
            return len(self.calls)
        return sum(1 for op, _ in self.calls if op == operation)

    def reset_calls(self) -> None:
        self.calls.clear()

    def snapshot(self, path: str) -> dict[str, Any] | None:
        """Stored fields for a path, read without recording a call."""
        doc = self._docs.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    # --- BaseBackingStore ---

    async def read_document(self, path: str) -> dict[str, Any] | None:
        self.calls.append(("read_document", path))
        return self.snapshot(path)

    async def read_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        self.calls.append(("read_collection", path))
        return [
            (identifier(doc_path), copy.deepcopy(fields))
            for doc_path, fields in self._docs.items()
            if not is_collection(doc_path) and parent_collection_path(doc_path) == path
        ]

    async def write_document(
        self, path: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        self.calls.append(("write_document", path))
        self._check_failure(path, "write")
        doc = copy.deepcopy(self._docs.get(path, {})) if merge else {}
        merge_fields(doc, copy.deepcopy(fields))
        self._docs[path] = doc
        logger.debug("memory write %s (merge=%s)", path, merge)

    async def update_document(self, path: str, fields: dict[str, Any]) -> None:
        self.calls.append(("update_document", path))
        self._check_failure(path, "update")
        if path not in self._docs:
            raise WriteError(path, "update", LookupError("no document to update"))
        doc = copy.deepcopy(self._docs[path])
        for key, value in copy.deepcopy(fields).items():
            if "." in key:
                apply_field_path(doc, key, value)
            elif isinstance(value, dict):
                nested: dict[str, Any] = {}
                merge_fields(nested, value)
                doc[key] = nested
            else:
                apply_field(doc, key, value)
        self._docs[path] = doc

    async def add_document(self, collection_path: str, fields: dict[str, Any]) -> str:
        self.calls.append(("add_document", collection_path))
        self._check_failure(collection_path, "add")
        doc_id = uuid.uuid4().hex[:20]
        doc: dict[str, Any] = {}
        merge_fields(doc, copy.deepcopy(fields))
        self._docs[join_path(collection_path, doc_id)] = doc
        return doc_id

    async def delete_document(self, path: str) -> None:
        self.calls.append(("delete_document", path))
        self._check_failure(path, "delete")
        self._docs.pop(path, None)

    def is_opaque_sentinel(self, value: Any) -> bool:
        return is_transform(value)

    def _check_failure(self, path: str, operation: str) -> None:
        if path in self.failing_paths:
            raise WriteError(path, operation, PermissionError("injected failure"))
