# tests/unit/storage/test_firestore_store.py - v1
"""Tests for storage/firestore_store.py - mocked AsyncClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from firecache.core.errors import WriteError
from firecache.storage.firestore_store import FirestoreBackingStore


class _ApiError(Exception):
    pass


class _Sentinel:
    pass


def _snapshot(doc_id, data, exists=True):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


class _AsyncIter:
    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    """FirestoreBackingStore wired to a mocked client."""
    with patch("firecache.storage.firestore_store.FirestoreBackingStore.__init__", return_value=None):
        s = FirestoreBackingStore.__new__(FirestoreBackingStore)
        s._client = client
        s._api_error = _ApiError
        s._sentinel_types = (_Sentinel,)
    return s


class TestFirestoreBackingStore:
    @pytest.mark.asyncio
    async def test_read_document(self, store, client):
        client.document.return_value.get = AsyncMock(return_value=_snapshot("42", {"name": "Ann"}))
        assert await store.read_document("users/42") == {"name": "Ann"}
        client.document.assert_called_with("users/42")

    @pytest.mark.asyncio
    async def test_read_missing_document(self, store, client):
        client.document.return_value.get = AsyncMock(return_value=_snapshot("42", None, exists=False))
        assert await store.read_document("users/42") is None

    @pytest.mark.asyncio
    async def test_read_collection(self, store, client):
        client.collection.return_value.stream = MagicMock(
            return_value=_AsyncIter([_snapshot("1", {"a": 1}), _snapshot("2", {"a": 2})])
        )
        assert await store.read_collection("users") == [("1", {"a": 1}), ("2", {"a": 2})]

    @pytest.mark.asyncio
    async def test_write_passes_merge(self, store, client):
        client.document.return_value.set = AsyncMock()
        await store.write_document("users/42", {"a": 1}, merge=True)
        client.document.return_value.set.assert_awaited_once_with({"a": 1}, merge=True)

    @pytest.mark.asyncio
    async def test_write_error_wrapped(self, store, client):
        client.document.return_value.set = AsyncMock(side_effect=_ApiError("denied"))
        with pytest.raises(WriteError, match="denied") as exc_info:
            await store.write_document("users/42", {"a": 1})
        assert isinstance(exc_info.value.cause, _ApiError)

    @pytest.mark.asyncio
    async def test_update_error_wrapped(self, store, client):
        client.document.return_value.update = AsyncMock(side_effect=_ApiError("not found"))
        with pytest.raises(WriteError):
            await store.update_document("users/42", {"a": 1})

    @pytest.mark.asyncio
    async def test_add_returns_id(self, store, client):
        doc_ref = MagicMock()
        doc_ref.id = "generated"
        client.collection.return_value.add = AsyncMock(return_value=(None, doc_ref))
        assert await store.add_document("users", {"a": 1}) == "generated"

    @pytest.mark.asyncio
    async def test_delete(self, store, client):
        client.document.return_value.delete = AsyncMock()
        await store.delete_document("users/42")
        client.document.return_value.delete.assert_awaited_once()

    def test_sentinel_predicate(self, store):
        assert store.is_opaque_sentinel(_Sentinel())
        assert not store.is_opaque_sentinel({"a": 1})

    @pytest.mark.asyncio
    async def test_aclose_handles_sync_close(self, store, client):
        client.close = MagicMock(return_value=None)
        await store.aclose()
        client.close.assert_called_once()

    def test_import_error_without_firestore(self):
        """Clear ImportError when google-cloud-firestore is not available."""
        import sys
        saved = {name: sys.modules.get(name) for name in ("google.cloud", "google.cloud.firestore")}
        sys.modules["google.cloud"] = None  # type: ignore[assignment]
        sys.modules["google.cloud.firestore"] = None  # type: ignore[assignment]
        try:
            with pytest.raises(ImportError, match="google-cloud-firestore"):
                FirestoreBackingStore(project="demo")
        finally:
            for name, module in saved.items():
                if module is not None:
                    sys.modules[name] = module
                else:
                    sys.modules.pop(name, None)
