"""
SQLAlchemy database models for tufhub.

All models use:
- UUIDv7 identifiers (time-sortable), stored as text so they can be embedded
  verbatim in key store identifiers and blob keys
- snake_case column names
- Plural table names
- TIMESTAMPTZ with UTC for all timestamps
- Hard deletes; namespace-owned rows go away through ON DELETE CASCADE
"""

import enum
import time
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tufhub.tuf.constants import TUFRepo, TUFRole


def generate_uuid7() -> uuid.UUID:
    """Generate a UUIDv7 (time-sortable UUID)."""
    timestamp_ms = int(time.time() * 1000)
    rand_bytes = uuid.uuid4().bytes[6:]

    uuid_bytes = (
        timestamp_ms.to_bytes(6, "big")
        + bytes([0x70 | (rand_bytes[0] & 0x0F)])  # Version 7
        + bytes([0x80 | (rand_bytes[1] & 0x3F)])  # Variant
        + rand_bytes[2:]
    )
    return uuid.UUID(bytes=uuid_bytes)


def generate_id() -> str:
    return str(generate_uuid7())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


class NamespaceStatus(enum.StrEnum):
    """Lifecycle state of a namespace's multi-store footprint.

    A namespace is written as PENDING_CREATE in the same transaction as its
    root metadata and promoted to ACTIVE only after the key store and blob
    store side effects have all completed.
    """

    PENDING_CREATE = "pending_create"
    ACTIVE = "active"


class ObjectStatus(enum.StrEnum):
    UPLOADING = "uploading"
    UPLOADED = "uploaded"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        dict[str, Any]: JSONB,
    }


class Namespace(Base):
    """Tenant boundary. Owns metadata, objects and (outside the database) keys and blobs."""

    __tablename__ = "namespaces"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    status: Mapped[NamespaceStatus] = mapped_column(
        _enum_column(NamespaceStatus, "namespace_status"),
        nullable=False,
        default=NamespaceStatus.PENDING_CREATE,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (Index("ix_namespaces_status", "status"),)


class Metadata(Base):
    """One TUF role document for one repository of a namespace."""

    __tablename__ = "metadata"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    namespace_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False
    )
    repo: Mapped[TUFRepo] = mapped_column(_enum_column(TUFRepo, "tuf_repo"), nullable=False)
    role: Mapped[TUFRole] = mapped_column(_enum_column(TUFRole, "tuf_role"), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "namespace_id", "repo", "role", "version", name="uq_metadata_namespace_repo_role_version"
        ),
    )


class Object(Base):
    """Record of one content-addressed blob.

    The row is the only thing consulted when answering whether an object
    exists; the blob itself is expected, not verified, to be present.
    """

    __tablename__ = "objects"

    namespace_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("namespaces.id", ondelete="CASCADE"), primary_key=True
    )
    object_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[ObjectStatus] = mapped_column(
        _enum_column(ObjectStatus, "object_status"),
        nullable=False,
        default=ObjectStatus.UPLOADING,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
