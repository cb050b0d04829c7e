"""Domain exceptions shared by the service layer.

Routers translate these into HTTP responses; anything that escapes as a
different exception type reaches the global handler and becomes a 500.
"""


class TufhubError(Exception):
    """Base exception for tufhub service-layer failures."""


class ValidationError(TufhubError):
    """Malformed or missing input, or a reference to an entity that does not exist.

    Raised before any store is mutated.
    """


class NotFoundError(TufhubError):
    """The entity being operated on is absent."""

    def __init__(self, kind: str, ident: str) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found: {ident}")


class ConsistencyFault(TufhubError):
    """The metadata store records an object the blob store cannot produce."""

    def __init__(self, namespace_id: str, object_id: str, storage_key: str) -> None:
        self.namespace_id = namespace_id
        self.object_id = object_id
        self.storage_key = storage_key
        super().__init__(
            f"Object {object_id} in namespace {namespace_id} is recorded "
            f"but blob {storage_key} is missing or unreadable"
        )


class StoreFailure(TufhubError):
    """A key store or blob store call failed for reasons other than absence."""
