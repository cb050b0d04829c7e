"""
Top-level test configuration for tufhub.
"""

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# Ensure test-friendly defaults
os.environ.setdefault("TUFHUB_STORAGE__BACKEND", "filesystem")
os.environ.setdefault("TUFHUB_KEY_STORAGE__BACKEND", "filesystem")
os.environ.setdefault("TUFHUB_JSON_LOGS", "false")
os.environ.setdefault("TUFHUB_LOG_LEVEL", "DEBUG")
# Ed25519 keeps key generation fast; RSA paths are covered explicitly
os.environ.setdefault("TUFHUB_TUF__KEY_TYPE", "ed25519")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from tufhub.keystore.filesystem import FilesystemKeyStore  # noqa: E402
from tufhub.services.encryption_service import reset_encryption  # noqa: E402
from tufhub.storage.filesystem import FilesystemStore  # noqa: E402


@pytest_asyncio.fixture
async def fs_store(tmp_path) -> AsyncGenerator[FilesystemStore]:
    """Create a FilesystemStore with a temporary directory."""
    store = FilesystemStore(root_dir=str(tmp_path / "blobs"))
    yield store
    await store.close()


@pytest_asyncio.fixture
async def fs_keystore(tmp_path) -> AsyncGenerator[FilesystemKeyStore]:
    """Create a FilesystemKeyStore with a temporary directory."""
    store = FilesystemKeyStore(root_dir=str(tmp_path / "keys"))
    yield store
    await store.close()


@pytest.fixture
def mock_db() -> AsyncMock:
    """AsyncSession stand-in; add() is synchronous on the real session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture(autouse=True)
def _plain_key_storage():
    """Each test starts without a Fernet key configured."""
    reset_encryption()
    yield
    reset_encryption()
