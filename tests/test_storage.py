"""
Tests for the session storage backends.
"""

import pytest

from coach_server.core.errors import StorageError
from coach_server.runtime_state import FileStorageBackend, MemoryStorageBackend


RECORD = {"userId": "u1", "messages": [{"role": "assistant", "content": "hi", "messageId": 1}]}


class TestMemoryStorage:

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        store = MemoryStorageBackend()
        assert await store.get("u1") is None

        await store.put("u1", RECORD)
        assert await store.get("u1") == RECORD

        await store.delete("u1")
        assert await store.get("u1") is None

    @pytest.mark.asyncio
    async def test_returns_copies(self):
        store = MemoryStorageBackend()
        await store.put("u1", RECORD)

        loaded = await store.get("u1")
        loaded["messages"].append({"role": "user", "content": "x", "messageId": 2})
        assert len((await store.get("u1"))["messages"]) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_key_is_silent(self):
        store = MemoryStorageBackend()
        await store.delete("nobody")
        assert len(store) == 0


class TestFileStorage:

    @pytest.mark.asyncio
    async def test_survives_restart(self, tmp_path):
        await FileStorageBackend(tmp_path).put("u1", RECORD)

        reopened = FileStorageBackend(tmp_path)
        assert await reopened.get("u1") == RECORD

    def test_paths_are_stable_and_confined(self, tmp_path):
        store = FileStorageBackend(tmp_path)
        path = store.path_for("../../etc/passwd")
        assert path.parent == tmp_path
        assert path == FileStorageBackend(tmp_path).path_for("../../etc/passwd")
        assert store.path_for("a") != store.path_for("b")

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, tmp_path):
        store = FileStorageBackend(tmp_path)
        await store.put("u1", RECORD)
        await store.delete("u1")
        await store.delete("u1")
        assert await store.get("u1") is None

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        store = FileStorageBackend(tmp_path)
        store.path_for("u1").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            await store.get("u1")

    @pytest.mark.asyncio
    async def test_non_object_json_raises(self, tmp_path):
        store = FileStorageBackend(tmp_path)
        store.path_for("u1").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(StorageError):
            await store.get("u1")

    @pytest.mark.asyncio
    async def test_creates_directory_on_first_write(self, tmp_path):
        store = FileStorageBackend(tmp_path / "nested" / "sessions")
        await store.put("u1", RECORD)
        assert store.path_for("u1").is_file()
        assert not list(store.directory.glob("*.tmp"))
