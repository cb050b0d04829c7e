"""
Key storage protocol for tufhub.

A key store holds named secrets (PEM strings). Names are produced by
tufhub.keystore.ids and never enumerated by the store itself.
"""

from typing import Protocol, runtime_checkable


class KeyStoreError(Exception):
    """Base exception for key store operations."""


class KeyNotFoundError(KeyStoreError):
    """Raised when a requested key does not exist."""

    def __init__(self, key_id: str) -> None:
        self.key_id = key_id
        super().__init__(f"Key not found: {key_id}")


@runtime_checkable
class KeyStore(Protocol):
    """Protocol defining the key storage interface."""

    async def put_key(self, key_id: str, value: str) -> None:
        """Store (or overwrite) a secret under key_id."""
        ...

    async def get_key(self, key_id: str) -> str:
        """Fetch a secret.

        Raises:
            KeyNotFoundError: If no secret is stored under key_id.
        """
        ...

    async def delete_key(self, key_id: str) -> None:
        """Delete a secret. Idempotent."""
        ...

    async def key_exists(self, key_id: str) -> bool:
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        ...
