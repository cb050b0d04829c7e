"""
Filesystem key storage backend for tufhub.

One file per secret, named after its identifier, readable only by the
service user. Suitable for dev/CI and single-node deployments.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import aiofiles
import aiofiles.os

from tufhub.keystore.protocol import KeyNotFoundError, KeyStoreError
from tufhub.logging_config import get_logger

logger = get_logger(__name__)

_VALID_KEY_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class FilesystemKeyStore:
    """Key store backed by a local directory."""

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)
        self._root.chmod(0o700)
        logger.info("Filesystem key store initialized", root_dir=str(self._root))

    def _path(self, key_id: str) -> Path:
        if not _VALID_KEY_ID.match(key_id):
            raise KeyStoreError(f"Invalid key id: {key_id}")
        return self._root / f"{key_id}.pem"

    async def put_key(self, key_id: str, value: str) -> None:
        path = self._path(key_id)
        try:
            # Created owner-only; never briefly world-readable
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            async with aiofiles.open(fd, "w", closefd=True) as f:
                await f.write(value)
        except OSError as e:
            raise KeyStoreError(f"Failed to write key {key_id}: {e}") from e

    async def get_key(self, key_id: str) -> str:
        path = self._path(key_id)
        if not path.is_file():
            raise KeyNotFoundError(key_id)
        try:
            async with aiofiles.open(path) as f:
                return await f.read()
        except OSError as e:
            raise KeyStoreError(f"Failed to read key {key_id}: {e}") from e

    async def delete_key(self, key_id: str) -> None:
        path = self._path(key_id)
        if not path.is_file():
            return
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            raise KeyStoreError(f"Failed to delete key {key_id}: {e}") from e

    async def key_exists(self, key_id: str) -> bool:
        return self._path(key_id).is_file()

    async def close(self) -> None:
        """No resources to release for filesystem backend."""

    @property
    def root_dir(self) -> Path:
        return self._root
