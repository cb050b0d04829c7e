"""
Tests for the filesystem storage backend.
"""

from __future__ import annotations

import pytest

from tufhub.storage.filesystem import FilesystemStore
from tufhub.storage.protocol import ObjectNotFoundError, ObjectStore, ObjectStoreError


class TestFilesystemStore:
    async def test_satisfies_protocol(self, fs_store: FilesystemStore) -> None:
        assert isinstance(fs_store, ObjectStore)

    async def test_put_and_get(self, fs_store: FilesystemStore) -> None:
        data = b"hello world"
        meta = await fs_store.put("ns1/ab/cdef", data, content_type="text/plain")
        assert meta.key == "ns1/ab/cdef"
        assert meta.size_bytes == len(data)
        assert meta.content_type == "text/plain"

        assert await fs_store.get("ns1/ab/cdef") == data

    async def test_put_overwrites(self, fs_store: FilesystemStore) -> None:
        await fs_store.put("ns1/summary", b"first")
        await fs_store.put("ns1/summary", b"second")
        assert await fs_store.get("ns1/summary") == b"second"

    async def test_get_nonexistent_raises(self, fs_store: FilesystemStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            await fs_store.get("nonexistent/key")

    async def test_delete_existing(self, fs_store: FilesystemStore) -> None:
        await fs_store.put("to-delete.txt", b"data")
        assert await fs_store.exists("to-delete.txt")

        await fs_store.delete("to-delete.txt")
        assert not await fs_store.exists("to-delete.txt")

    async def test_delete_nonexistent_is_idempotent(self, fs_store: FilesystemStore) -> None:
        await fs_store.delete("never-existed.txt")  # Should not raise

    async def test_list_prefix(self, fs_store: FilesystemStore) -> None:
        await fs_store.put("ns1/ab/one", b"1")
        await fs_store.put("ns1/cd/two", b"2")
        await fs_store.put("ns2/ab/three", b"3")

        keys = [m.key for m in await fs_store.list_prefix("ns1/")]
        assert keys == ["ns1/ab/one", "ns1/cd/two"]

    async def test_list_prefix_empty(self, fs_store: FilesystemStore) -> None:
        assert await fs_store.list_prefix("nonexistent/") == []

    async def test_path_traversal_rejected(self, fs_store: FilesystemStore) -> None:
        with pytest.raises(ObjectStoreError):
            await fs_store.put("../escape.txt", b"bad")

    async def test_absolute_key_rejected(self, fs_store: FilesystemStore) -> None:
        with pytest.raises(ObjectStoreError):
            await fs_store.get("/etc/passwd")

    async def test_write_over_directory_raises_store_error(self, fs_store: FilesystemStore) -> None:
        await fs_store.put("ns1/ab/cdef", b"object")
        with pytest.raises(ObjectStoreError):
            await fs_store.put("ns1/ab", b"clobber")

    async def test_write_under_file_raises_store_error(self, fs_store: FilesystemStore) -> None:
        await fs_store.put("ns1/ab", b"object")
        with pytest.raises(ObjectStoreError):
            await fs_store.put("ns1/ab/cdef", b"nested")


class TestFilesystemContainers:
    async def test_create_container(self, fs_store: FilesystemStore) -> None:
        assert not await fs_store.container_exists("ns1")
        await fs_store.create_container("ns1")
        assert await fs_store.container_exists("ns1")
        assert (fs_store.root_dir / "ns1").is_dir()

    async def test_create_container_is_idempotent(self, fs_store: FilesystemStore) -> None:
        await fs_store.create_container("ns1")
        await fs_store.create_container("ns1")
        assert await fs_store.container_exists("ns1")

    async def test_delete_container_removes_contents(self, fs_store: FilesystemStore) -> None:
        await fs_store.create_container("ns1")
        await fs_store.put("ns1/ab/cdef", b"object")
        await fs_store.put("ns1/summary", b"summary")
        await fs_store.put("ns2/ab/cdef", b"other namespace")

        await fs_store.delete_container("ns1")

        assert not await fs_store.container_exists("ns1")
        assert not await fs_store.exists("ns1/ab/cdef")
        assert await fs_store.get("ns2/ab/cdef") == b"other namespace"

    async def test_delete_missing_container_is_idempotent(self, fs_store: FilesystemStore) -> None:
        await fs_store.delete_container("never-created")  # Should not raise
