"""Tests for object synchronization: row state vs blob presence."""

from unittest.mock import AsyncMock, patch

import pytest

from tufhub.db.models import Object, ObjectStatus
from tufhub.errors import ConsistencyFault, NotFoundError, StoreFailure, ValidationError
from tufhub.services.object_service import (
    download_object,
    object_exists,
    parse_declared_size,
    upload_object,
)
from tufhub.storage.keys import object_storage_key
from tufhub.storage.protocol import ObjectStoreError

NS = "ns-1"
OID = "abcdef0123.commit"


class FakeObjectTable:
    """In-memory stand-in for the objects table queries used by the service."""

    def __init__(self, namespaces: set[str]) -> None:
        self.namespaces = namespaces
        self.rows: dict[tuple[str, str], Object] = {}

    async def namespace_exists(self, db, namespace_id):
        return namespace_id in self.namespaces

    async def get_object(self, db, namespace_id, object_id):
        return self.rows.get((namespace_id, object_id))

    async def upsert_uploading(self, db, namespace_id, object_id, size):
        self.rows[(namespace_id, object_id)] = Object(
            namespace_id=namespace_id,
            object_id=object_id,
            size=size,
            status=ObjectStatus.UPLOADING,
        )

    async def mark_uploaded(self, db, namespace_id, object_id):
        self.rows[(namespace_id, object_id)].status = ObjectStatus.UPLOADED


@pytest.fixture
def table():
    fake = FakeObjectTable({NS})
    with (
        patch("tufhub.services.object_service.namespace_exists", fake.namespace_exists),
        patch("tufhub.services.object_service.get_object", fake.get_object),
        patch("tufhub.services.object_service.upsert_uploading", fake.upsert_uploading),
        patch("tufhub.services.object_service.mark_uploaded", fake.mark_uploaded),
    ):
        yield fake


class TestParseDeclaredSize:
    def test_accepts_positive_integers(self):
        assert parse_declared_size("42") == 42
        assert parse_declared_size(7) == 7

    @pytest.mark.parametrize("raw", [None, "", "abc", "1.5", "0", "-3"])
    def test_rejects_bad_sizes(self, raw):
        with pytest.raises(ValidationError):
            parse_declared_size(raw)


class TestUpload:
    async def test_round_trip(self, table, mock_db, fs_store):
        await upload_object(mock_db, fs_store, NS, OID, b"object bytes", "12")

        row = table.rows[(NS, OID)]
        assert row.status == ObjectStatus.UPLOADED
        assert row.size == 12
        assert await fs_store.get(object_storage_key(NS, OID)) == b"object bytes"
        assert await download_object(mock_db, fs_store, NS, OID) == b"object bytes"

    async def test_row_committed_before_blob(self, table, mock_db, fs_store):
        await upload_object(mock_db, fs_store, NS, OID, b"x", 1)
        assert mock_db.commit.await_count == 2

    async def test_reupload_overwrites(self, table, mock_db, fs_store):
        await upload_object(mock_db, fs_store, NS, OID, b"first", 5)
        await upload_object(mock_db, fs_store, NS, OID, b"second!", 7)
        assert table.rows[(NS, OID)].size == 7
        assert await download_object(mock_db, fs_store, NS, OID) == b"second!"

    async def test_bad_size_writes_nothing(self, table, mock_db, fs_store):
        with pytest.raises(ValidationError):
            await upload_object(mock_db, fs_store, NS, OID, b"data", "0")
        assert table.rows == {}
        assert not await fs_store.exists(object_storage_key(NS, OID))
        mock_db.commit.assert_not_awaited()

    async def test_unknown_namespace_rejected(self, table, mock_db, fs_store):
        with pytest.raises(ValidationError):
            await upload_object(mock_db, fs_store, "ns-missing", OID, b"data", 4)
        assert table.rows == {}

    async def test_blob_failure_leaves_uploading(self, table, mock_db, fs_store):
        failing = AsyncMock(side_effect=ObjectStoreError("disk full"))
        with patch.object(fs_store, "put", failing), pytest.raises(StoreFailure):
            await upload_object(mock_db, fs_store, NS, OID, b"data", 4)

        assert table.rows[(NS, OID)].status == ObjectStatus.UPLOADING
        # Recorded but absent: existence says yes, download is a fault
        assert await object_exists(mock_db, NS, OID)
        with pytest.raises(ConsistencyFault):
            await download_object(mock_db, fs_store, NS, OID)


class TestExistsAndDownload:
    async def test_exists_before_and_after_upload(self, table, mock_db, fs_store):
        assert not await object_exists(mock_db, NS, OID)
        await upload_object(mock_db, fs_store, NS, OID, b"data", 4)
        assert await object_exists(mock_db, NS, OID)

    async def test_download_unknown_is_not_found(self, table, mock_db, fs_store):
        with pytest.raises(NotFoundError):
            await download_object(mock_db, fs_store, NS, OID)

    async def test_empty_blob_is_fault(self, table, mock_db, fs_store):
        await table.upsert_uploading(mock_db, NS, OID, 4)
        await fs_store.put(object_storage_key(NS, OID), b"")
        with pytest.raises(ConsistencyFault) as exc_info:
            await download_object(mock_db, fs_store, NS, OID)
        assert exc_info.value.storage_key == object_storage_key(NS, OID)

    async def test_namespaces_are_isolated(self, table, mock_db, fs_store):
        table.namespaces.add("ns-2")
        await upload_object(mock_db, fs_store, NS, OID, b"data", 4)
        assert not await object_exists(mock_db, "ns-2", OID)
