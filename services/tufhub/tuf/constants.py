"""TUF repository kinds, top-level roles and key-record uses."""

from enum import StrEnum


class TUFRepo(StrEnum):
    """The two independently keyed trust domains every namespace owns."""

    IMAGE = "image"
    DIRECTOR = "director"


class TUFRole(StrEnum):
    ROOT = "root"
    TARGETS = "targets"
    SNAPSHOT = "snapshot"
    TIMESTAMP = "timestamp"


class KeyUse(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


# Version every freshly bootstrapped root document starts at
INITIAL_ROOT_VERSION = 1

TUF_SPEC_VERSION = "1.0.0"
