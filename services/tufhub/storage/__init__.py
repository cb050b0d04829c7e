"""
Blob storage abstraction layer for tufhub.

Provides init_storage() / close_storage() for app lifespan and
get_storage() as a FastAPI dependency.
"""

from __future__ import annotations

from tufhub.config import StorageBackend, settings
from tufhub.logging_config import get_logger
from tufhub.storage.protocol import ObjectStore

logger = get_logger(__name__)

# Module-level storage instance
_store: ObjectStore | None = None


async def init_storage() -> None:
    """Initialize the storage backend based on configuration.

    Called during app startup (lifespan).
    """
    global _store  # noqa: PLW0603
    cfg = settings.storage

    match cfg.backend:
        case StorageBackend.FILESYSTEM:
            from tufhub.storage.filesystem import FilesystemStore

            _store = FilesystemStore(root_dir=cfg.filesystem.root_dir)
            logger.info(
                "Storage initialized", backend="filesystem", root_dir=cfg.filesystem.root_dir
            )

        case StorageBackend.S3:
            from tufhub.storage.s3 import S3Store

            _store = S3Store(
                bucket=cfg.s3.bucket,
                region=cfg.s3.region,
                prefix=cfg.s3.prefix,
                endpoint_url=cfg.s3.endpoint_url,
            )
            logger.info("Storage initialized", backend="s3", bucket=cfg.s3.bucket)


async def close_storage() -> None:
    """Close the storage backend and release resources.

    Called during app shutdown (lifespan).
    """
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
        _store = None
        logger.info("Storage closed")


def get_storage() -> ObjectStore:
    """FastAPI dependency that returns the storage backend.

    Raises RuntimeError if storage has not been initialized.
    """
    if _store is None:
        raise RuntimeError("Storage not initialized (call init_storage() first)")
    return _store


def get_storage_or_none() -> ObjectStore | None:
    """Return the storage backend if initialized, otherwise None."""
    return _store
