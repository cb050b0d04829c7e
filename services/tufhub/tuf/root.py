"""Unsigned TUF root metadata generation.

Signing happens in a later stage; documents built here carry an empty
signature list.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from tufhub.config import KeyType
from tufhub.tuf.constants import TUF_SPEC_VERSION, TUFRole
from tufhub.tuf.keys import KeyPair, generate_key_pair

EXPIRY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_expiry(moment: datetime) -> str:
    """TUF expiry string: UTC, second precision, ``Z`` suffix."""
    return moment.astimezone(UTC).strftime(EXPIRY_FORMAT)


def parse_expiry(value: str) -> datetime:
    return datetime.strptime(value, EXPIRY_FORMAT).replace(tzinfo=UTC)


def generate_role_keys(key_type: KeyType) -> dict[TUFRole, KeyPair]:
    """One fresh key pair for each top-level role of a repository."""
    return {role: generate_key_pair(key_type) for role in TUFRole}


def generate_root(
    ttl: int,
    version: int,
    root_key: KeyPair,
    targets_key: KeyPair,
    snapshot_key: KeyPair,
    timestamp_key: KeyPair,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build a root metadata document referencing one key per top-level role.

    Args:
        ttl: Seconds from now until the document expires.
        version: Metadata version.
        root_key, targets_key, snapshot_key, timestamp_key: Role keys.
        now: Reference time for the expiry (defaults to the current time).

    Returns:
        ``{"signed": {...}, "signatures": []}``
    """
    role_keys = {
        TUFRole.ROOT: root_key,
        TUFRole.TARGETS: targets_key,
        TUFRole.SNAPSHOT: snapshot_key,
        TUFRole.TIMESTAMP: timestamp_key,
    }
    reference = now or datetime.now(UTC)

    keys: dict[str, Any] = {}
    roles: dict[str, Any] = {}
    for role, key_pair in role_keys.items():
        key_id = key_pair.key_id
        keys[key_id] = key_pair.to_tuf_key()
        roles[role.value] = {"keyids": [key_id], "threshold": 1}

    return {
        "signed": {
            "_type": "root",
            "spec_version": TUF_SPEC_VERSION,
            "consistent_snapshot": False,
            "version": version,
            "expires": format_expiry(reference + timedelta(seconds=ttl)),
            "keys": keys,
            "roles": roles,
        },
        "signatures": [],
    }


def root_expires_at(document: dict[str, Any]) -> datetime:
    """Expiry of a root document as an aware datetime, for the metadata row."""
    return parse_expiry(document["signed"]["expires"])
