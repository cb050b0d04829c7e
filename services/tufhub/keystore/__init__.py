"""
Key storage layer for tufhub.

Provides init_keystore() / close_keystore() for app lifespan and
get_keystore() as a FastAPI dependency.
"""

from __future__ import annotations

from tufhub.config import KeyStorageBackend, settings
from tufhub.keystore.protocol import KeyStore
from tufhub.logging_config import get_logger

logger = get_logger(__name__)

# Module-level key store instance
_keystore: KeyStore | None = None


async def init_keystore() -> None:
    """Initialize the key storage backend based on configuration.

    The redis backend expects init_redis() to have run first.
    """
    global _keystore  # noqa: PLW0603
    cfg = settings.key_storage

    match cfg.backend:
        case KeyStorageBackend.FILESYSTEM:
            from tufhub.keystore.filesystem import FilesystemKeyStore

            _keystore = FilesystemKeyStore(root_dir=cfg.root_dir)
            logger.info("Key store initialized", backend="filesystem", root_dir=cfg.root_dir)

        case KeyStorageBackend.REDIS:
            from tufhub.keystore.redis import RedisKeyStore
            from tufhub.redis.client import get_redis_client

            _keystore = RedisKeyStore(get_redis_client(), prefix=cfg.redis_prefix)
            logger.info("Key store initialized", backend="redis")


async def close_keystore() -> None:
    global _keystore  # noqa: PLW0603
    if _keystore is not None:
        await _keystore.close()
        _keystore = None
        logger.info("Key store closed")


def get_keystore() -> KeyStore:
    """FastAPI dependency that returns the key store.

    Raises RuntimeError if the key store has not been initialized.
    """
    if _keystore is None:
        raise RuntimeError("Key store not initialized (call init_keystore() first)")
    return _keystore


def get_keystore_or_none() -> KeyStore | None:
    return _keystore
