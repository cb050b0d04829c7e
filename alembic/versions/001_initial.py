"""Initial schema: namespaces, TUF metadata and content-addressed objects.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

namespace_status = sa.Enum("pending_create", "active", name="namespace_status")
object_status = sa.Enum("uploading", "uploaded", name="object_status")
tuf_repo = sa.Enum("image", "director", name="tuf_repo")
tuf_role = sa.Enum("root", "targets", "snapshot", "timestamp", name="tuf_role")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "namespaces",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "status",
            namespace_status,
            nullable=False,
            server_default="pending_create",
        ),
        *_timestamps(),
    )
    op.create_index("ix_namespaces_status", "namespaces", ["status"])

    op.create_table(
        "metadata",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "namespace_id",
            sa.String(36),
            sa.ForeignKey("namespaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("repo", tuf_repo, nullable=False),
        sa.Column("role", tuf_role, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("value", postgresql.JSONB(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "namespace_id",
            "repo",
            "role",
            "version",
            name="uq_metadata_namespace_repo_role_version",
        ),
    )

    op.create_table(
        "objects",
        sa.Column(
            "namespace_id",
            sa.String(36),
            sa.ForeignKey("namespaces.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("object_id", sa.String(255), primary_key=True),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column(
            "status",
            object_status,
            nullable=False,
            server_default="uploading",
        ),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("objects")
    op.drop_table("metadata")
    op.drop_index("ix_namespaces_status", table_name="namespaces")
    op.drop_table("namespaces")

    bind = op.get_bind()
    for enum_type in (tuf_role, tuf_repo, object_status, namespace_status):
        enum_type.drop(bind, checkfirst=True)
