"""
Key path helpers for blob storage.

Provides consistent key naming for all stored blobs. Every key is
qualified by the namespace id, which is also the namespace's container name.
These are pure functions: no lookups, no caching.
"""

import re

from tufhub.errors import ValidationError

# Object id of the ostree summary file; stored unsharded under the namespace
SUMMARY_OBJECT_ID = "summary"

# Length of the fan-out directory component of a content-addressed object id
OBJECT_PREFIX_LENGTH = 2

# ostree fans objects out by the first two hex digits of their checksum
_OBJECT_PREFIX = re.compile(rf"^[0-9a-f]{{{OBJECT_PREFIX_LENGTH}}}$")


def namespace_container(namespace_id: str) -> str:
    """Container holding every blob of a namespace."""
    return namespace_id


def object_id_from_parts(prefix: str, suffix: str) -> str:
    """Object id recorded in the database for a ``{prefix}/{suffix}`` request path.

    Only paths that split_object_id maps back onto the same two parts are
    accepted, so the storage key of an object is always
    ``{namespace_id}/{prefix}/{suffix}``. Raises ValidationError otherwise.
    """
    if not _OBJECT_PREFIX.match(prefix):
        raise ValidationError(
            f"Object prefix must be {OBJECT_PREFIX_LENGTH} lowercase hex digits, got {prefix!r}"
        )
    if suffix in ("", ".", ".."):
        raise ValidationError(f"Invalid object suffix: {suffix!r}")
    return prefix + suffix


def split_object_id(object_id: str) -> tuple[str, str]:
    """Inverse of object_id_from_parts."""
    return object_id[:OBJECT_PREFIX_LENGTH], object_id[OBJECT_PREFIX_LENGTH:]


def object_storage_key(namespace_id: str, object_id: str) -> str:
    """Key for a content-addressed object.

    ``ab`` + ``cdef...`` lives at ``{namespace_id}/ab/cdef...`` so no single
    directory collects every object of a namespace.
    """
    if object_id == SUMMARY_OBJECT_ID:
        return summary_key(namespace_id)
    prefix, suffix = split_object_id(object_id)
    return f"{namespace_container(namespace_id)}/{prefix}/{suffix}"


def summary_key(namespace_id: str) -> str:
    """Key for a namespace's ostree summary file."""
    return f"{namespace_container(namespace_id)}/{SUMMARY_OBJECT_ID}"


def root_ca_cert_key(namespace_id: str) -> str:
    """Key for a namespace's root CA certificate (PEM)."""
    return f"{namespace_container(namespace_id)}/root-ca.pem"
