"""
Blob storage protocol and types for tufhub.

Defines the ObjectStore Protocol that all blob storage backends must satisfy,
along with shared data types and exceptions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

# --- Data Types ---


@dataclass(frozen=True)
class ObjectMeta:
    """Metadata about a stored object."""

    key: str
    size_bytes: int
    content_type: str
    etag: str
    last_modified: datetime
    metadata: dict[str, str] = field(default_factory=dict)


# --- Exceptions ---


class ObjectStoreError(Exception):
    """Base exception for object store operations."""


class ObjectNotFoundError(ObjectStoreError):
    """Raised when a requested object does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class ObjectStorePermissionError(ObjectStoreError):
    """Raised when the caller lacks permission for the operation."""


# --- Protocol ---


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol defining the blob storage interface.

    All methods are async. Implementations must satisfy this interface
    structurally (duck typing), no inheritance required.

    A "container" is the top-level grouping a namespace's blobs live under.
    Every key a namespace writes starts with ``{container}/``.
    """

    async def create_container(self, name: str) -> None:
        """Create a container. Idempotent."""
        ...

    async def delete_container(self, name: str) -> None:
        """Delete a container and every object in it.

        Idempotent: does not raise if the container does not exist.
        """
        ...

    async def container_exists(self, name: str) -> bool:
        """Check whether a container has been created."""
        ...

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> ObjectMeta:
        """Store an object.

        Args:
            key: Object key (path).
            data: Object content.
            content_type: MIME type.
            metadata: Optional user-defined metadata.

        Returns:
            Metadata of the stored object.
        """
        ...

    async def get(self, key: str) -> bytes:
        """Retrieve an object's content.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete an object.

        Idempotent: does not raise if the object does not exist.
        """
        ...

    async def exists(self, key: str) -> bool:
        """Check if an object exists."""
        ...

    async def list_prefix(self, prefix: str) -> list[ObjectMeta]:
        """List objects matching a key prefix."""
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        ...
