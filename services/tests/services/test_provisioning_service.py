"""Tests for device provisioning credential issuance."""

import io
import zipfile
from unittest.mock import AsyncMock, patch

import pytest
from cryptography import x509
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives.serialization import pkcs12

from tufhub.config import settings
from tufhub.errors import NotFoundError, StoreFailure, ValidationError
from tufhub.keystore.ids import root_ca_key_id
from tufhub.pki.bundle import CREDENTIALS_FILENAME, URL_FILENAME, gateway_url
from tufhub.services.encryption_service import init_encryption
from tufhub.services.namespace_service import create_namespace
from tufhub.services.provisioning_service import (
    issue_provisioning_credentials,
    load_namespace_ca,
)
from tufhub.storage.keys import root_ca_cert_key
from tufhub.tuf.constants import KeyUse


@pytest.fixture
def known_namespace():
    with patch(
        "tufhub.services.provisioning_service.namespace_exists",
        AsyncMock(return_value=True),
    ):
        yield


def _open_archive(archive: bytes) -> tuple[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return zf.read(URL_FILENAME).decode("utf-8"), zf.read(CREDENTIALS_FILENAME)


class TestIssueProvisioningCredentials:
    async def test_chain_validates_to_namespace_root(
        self, mock_db, fs_store, fs_keystore, known_namespace
    ):
        namespace = await create_namespace(mock_db, fs_store, fs_keystore)

        archive = await issue_provisioning_credentials(mock_db, fs_store, fs_keystore, namespace.id)
        url, p12 = _open_archive(archive)

        assert url == gateway_url(settings.provisioning.gateway_hostname, namespace.id)

        key, cert, cas = pkcs12.load_key_and_certificates(p12, None)
        root = x509.load_pem_x509_certificate(await fs_store.get(root_ca_cert_key(namespace.id)))
        assert cas == [root]
        cert.verify_directly_issued_by(root)
        assert key.public_key().public_numbers() == cert.public_key().public_numbers()

    async def test_leaf_key_is_not_persisted(
        self, mock_db, fs_store, fs_keystore, known_namespace
    ):
        namespace = await create_namespace(mock_db, fs_store, fs_keystore)
        keys_before = sorted(p.name for p in fs_keystore.root_dir.iterdir())
        blobs_before = await fs_store.list_prefix(f"{namespace.id}/")

        await issue_provisioning_credentials(mock_db, fs_store, fs_keystore, namespace.id)

        assert sorted(p.name for p in fs_keystore.root_dir.iterdir()) == keys_before
        assert await fs_store.list_prefix(f"{namespace.id}/") == blobs_before

    async def test_unknown_namespace(self, mock_db, fs_store, fs_keystore):
        with (
            patch(
                "tufhub.services.provisioning_service.namespace_exists",
                AsyncMock(return_value=False),
            ),
            pytest.raises(NotFoundError),
        ):
            await issue_provisioning_credentials(mock_db, fs_store, fs_keystore, "ns-missing")

    async def test_disabled(self, mock_db, fs_store, fs_keystore, known_namespace, monkeypatch):
        monkeypatch.setattr(settings.provisioning, "enabled", False)
        with pytest.raises(ValidationError):
            await issue_provisioning_credentials(mock_db, fs_store, fs_keystore, "ns-1")


class TestLoadNamespaceCa:
    async def test_missing_material(self, fs_store, fs_keystore):
        with pytest.raises(StoreFailure):
            await load_namespace_ca(fs_store, fs_keystore, "ns-missing")

    async def test_mismatched_public_key(self, mock_db, fs_store, fs_keystore):
        first = await create_namespace(mock_db, fs_store, fs_keystore)
        second = await create_namespace(mock_db, fs_store, fs_keystore)
        other_public = await fs_keystore.get_key(root_ca_key_id(second.id, KeyUse.PUBLIC))
        await fs_keystore.put_key(root_ca_key_id(first.id, KeyUse.PUBLIC), other_public)

        with pytest.raises(StoreFailure):
            await load_namespace_ca(fs_store, fs_keystore, first.id)

    async def test_reads_encrypted_private_key(self, mock_db, fs_store, fs_keystore, monkeypatch):
        monkeypatch.setattr(settings, "encryption_key", Fernet.generate_key().decode())
        init_encryption()
        namespace = await create_namespace(mock_db, fs_store, fs_keystore)

        stored = await fs_keystore.get_key(root_ca_key_id(namespace.id, KeyUse.PRIVATE))
        assert "PRIVATE KEY" not in stored

        ca = await load_namespace_ca(fs_store, fs_keystore, namespace.id)
        assert ca.ca_cert.subject == ca.ca_cert.issuer
