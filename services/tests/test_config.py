"""Tests for settings loading."""

from tufhub.config import KeyType, NamespaceCleanup, Settings, StorageBackend


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TUFHUB_TUF__KEY_TYPE", raising=False)
        s = Settings()
        assert s.tuf.key_type == KeyType.RSA
        assert s.tuf.ttl.image.root == 365 * 24 * 3600
        assert s.tuf.ttl.director.timestamp == 24 * 3600
        assert s.storage.namespace_cleanup == NamespaceCleanup.CONTAINER
        assert s.key_storage.store_public_keys is True
        assert s.provisioning.enabled is True
        assert (s.database_pool_size, s.database_max_overflow) == (10, 20)

    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("TUFHUB_STORAGE__BACKEND", "s3")
        monkeypatch.setenv("TUFHUB_STORAGE__S3__BUCKET", "ota-blobs")
        monkeypatch.setenv("TUFHUB_TUF__TTL__DIRECTOR__TIMESTAMP", "600")
        s = Settings()
        assert s.storage.backend == StorageBackend.S3
        assert s.storage.s3.bucket == "ota-blobs"
        assert s.tuf.ttl.director.timestamp == 600

    def test_yaml_source(self, monkeypatch):
        monkeypatch.setattr(
            "tufhub.config.yaml_config_settings_source",
            lambda: {"reconcile_grace_seconds": 42, "provisioning": {"enabled": False}},
        )
        s = Settings()
        assert s.reconcile_grace_seconds == 42
        assert s.provisioning.enabled is False
