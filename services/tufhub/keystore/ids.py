"""Deterministic key store identifiers.

Every identifier is rebuilt from the namespace id and the (repo, role, use)
enumeration alone, so deleting a namespace's keys needs no lookup table.
"""

from tufhub.tuf.constants import KeyUse, TUFRepo, TUFRole


def key_record_id(namespace_id: str, repo: TUFRepo, role: TUFRole, use: KeyUse) -> str:
    """Identifier of one half of a TUF role key, e.g. ``{ns}-image-root-private``."""
    return f"{namespace_id}-{repo.value}-{role.value}-{use.value}"


def root_ca_key_id(namespace_id: str, use: KeyUse) -> str:
    """Identifier of one half of a namespace's provisioning root CA key."""
    return f"{namespace_id}-root-ca-{use.value}"


def key_uses(include_public: bool) -> tuple[KeyUse, ...]:
    if include_public:
        return (KeyUse.PRIVATE, KeyUse.PUBLIC)
    return (KeyUse.PRIVATE,)


def namespace_key_ids(namespace_id: str, include_public: bool = True) -> list[str]:
    """All TUF key record identifiers a namespace was created with (16, or 8 private-only)."""
    return [
        key_record_id(namespace_id, repo, role, use)
        for repo in TUFRepo
        for use in key_uses(include_public)
        for role in TUFRole
    ]


def root_ca_key_ids(namespace_id: str) -> list[str]:
    return [root_ca_key_id(namespace_id, use) for use in KeyUse]
