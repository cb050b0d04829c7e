"""
Filesystem storage backend for tufhub.

Uses aiofiles for async I/O against a local directory. Each namespace
container is a directory directly under the root. This is the default
backend, needing no external services for dev/CI.
"""

from __future__ import annotations

import asyncio
import hashlib
import shutil
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
import aiofiles.os

from tufhub.logging_config import get_logger
from tufhub.storage.protocol import (
    ObjectMeta,
    ObjectNotFoundError,
    ObjectStoreError,
)

logger = get_logger(__name__)


class FilesystemStore:
    """Object store backed by the local filesystem."""

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)

        # Ensure root directory exists
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info("Filesystem store initialized", root_dir=str(self._root))

    def _full_path(self, key: str) -> Path:
        """Resolve key to a full filesystem path, preventing path traversal."""
        clean = Path(key)
        if not key or clean.is_absolute() or ".." in clean.parts:
            raise ObjectStoreError(f"Invalid key: {key}")
        return self._root / clean

    def _key_from_path(self, path: Path) -> str:
        """Convert a filesystem path back to a key."""
        return path.relative_to(self._root).as_posix()

    async def create_container(self, name: str) -> None:
        path = self._full_path(name)
        await aiofiles.os.makedirs(path, exist_ok=True)
        logger.debug("Container created", container=name)

    async def delete_container(self, name: str) -> None:
        path = self._full_path(name)
        if not path.is_dir():
            return
        # shutil has no async counterpart; keep the event loop free while it walks
        await asyncio.to_thread(shutil.rmtree, path)
        logger.debug("Container deleted", container=name)

    async def container_exists(self, name: str) -> bool:
        return self._full_path(name).is_dir()

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> ObjectMeta:
        path = self._full_path(key)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
            stat = await aiofiles.os.stat(path)
        except OSError as e:
            raise ObjectStoreError(f"Failed to write {key}: {e}") from e

        etag = hashlib.md5(data).hexdigest()  # noqa: S324

        return ObjectMeta(
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            etag=etag,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            metadata=metadata or {},
        )

    async def get(self, key: str) -> bytes:
        path = self._full_path(key)
        if not path.is_file():
            raise ObjectNotFoundError(key)

        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def delete(self, key: str) -> None:
        path = self._full_path(key)
        if path.is_file():
            await aiofiles.os.remove(path)

    async def exists(self, key: str) -> bool:
        return self._full_path(key).is_file()

    async def list_prefix(self, prefix: str) -> list[ObjectMeta]:
        prefix_path = self._full_path(prefix) if prefix else self._root
        results: list[ObjectMeta] = []

        search_dir = prefix_path if prefix_path.is_dir() else prefix_path.parent
        if not search_dir.exists():
            return results

        for path in sorted(search_dir.rglob("*")):
            if not path.is_file():
                continue
            key = self._key_from_path(path)
            if key.startswith(prefix):
                stat = await aiofiles.os.stat(path)
                results.append(
                    ObjectMeta(
                        key=key,
                        size_bytes=stat.st_size,
                        content_type="application/octet-stream",
                        etag="",
                        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                    )
                )

        return results

    async def close(self) -> None:
        """No resources to release for filesystem backend."""

    @property
    def root_dir(self) -> Path:
        """The root directory for stored objects."""
        return self._root
