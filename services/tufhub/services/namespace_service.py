"""Service layer for the namespace trust-bootstrap lifecycle.

A namespace spans three stores that share no transaction:

- the database holds the namespace row and its root metadata,
- the blob store holds a container for the namespace's objects (and the
  provisioning root CA certificate),
- the key store holds every private (and optionally public) key.

Creation commits the database rows first with the namespace marked
``pending_create``, then performs the blob and key side effects in order,
then marks the namespace ``active``. A failure part way leaves the row
pending for the reconciliation sweep; nothing is compensated in-request.

Deletion removes the database row first so the namespace disappears from
the read path immediately, then cleans up blobs and keys.
"""

from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.config import NamespaceCleanup, settings
from tufhub.db.models import Metadata, Namespace, NamespaceStatus, Object, generate_id, utc_now
from tufhub.errors import NotFoundError, StoreFailure
from tufhub.keystore.ids import key_record_id, namespace_key_ids, root_ca_key_id, root_ca_key_ids
from tufhub.keystore.protocol import KeyStore, KeyStoreError
from tufhub.logging_config import get_logger
from tufhub.pki.ca import (
    CertificateAuthority,
    generate_rsa_key,
    serialize_private_key,
    serialize_public_key,
)
from tufhub.services.encryption_service import seal_private_key
from tufhub.storage.keys import namespace_container, object_storage_key, root_ca_cert_key
from tufhub.storage.protocol import ObjectStore, ObjectStoreError
from tufhub.tuf.constants import INITIAL_ROOT_VERSION, KeyUse, TUFRepo, TUFRole
from tufhub.tuf.keys import KeyPair
from tufhub.tuf.root import generate_role_keys, generate_root, root_expires_at

logger = get_logger(__name__)


@dataclass
class NamespaceKeyMaterial:
    """Everything generated in memory before a namespace is persisted."""

    repo_keys: dict[TUFRepo, dict[TUFRole, KeyPair]]
    ca_key: rsa.RSAPrivateKey | None = None
    roots: dict[TUFRepo, dict] = field(default_factory=dict)


def role_ttl(repo: TUFRepo, role: TUFRole) -> int:
    """Configured metadata lifetime in seconds for one role of one repository."""
    return getattr(getattr(settings.tuf.ttl, repo.value), role.value)


def generate_key_material(with_ca: bool) -> NamespaceKeyMaterial:
    """Generate 4 role keys per repository kind, both root documents, and the CA key."""
    material = NamespaceKeyMaterial(
        repo_keys={repo: generate_role_keys(settings.tuf.key_type) for repo in TUFRepo},
        ca_key=generate_rsa_key() if with_ca else None,
    )

    for repo, keys in material.repo_keys.items():
        material.roots[repo] = generate_root(
            role_ttl(repo, TUFRole.ROOT),
            INITIAL_ROOT_VERSION,
            keys[TUFRole.ROOT],
            keys[TUFRole.TARGETS],
            keys[TUFRole.SNAPSHOT],
            keys[TUFRole.TIMESTAMP],
        )

    return material


async def get_namespace(db: AsyncSession, namespace_id: str) -> Namespace | None:
    result = await db.execute(select(Namespace).where(Namespace.id == namespace_id))
    return result.scalars().first()


async def namespace_exists(db: AsyncSession, namespace_id: str) -> bool:
    result = await db.execute(select(Namespace.id).where(Namespace.id == namespace_id))
    return result.scalar_one_or_none() is not None


async def _persist_key_pair(
    keystore: KeyStore,
    private_id: str,
    public_id: str | None,
    private_pem: str,
    public_pem: str,
) -> None:
    await keystore.put_key(private_id, seal_private_key(private_pem))
    if public_id is not None:
        await keystore.put_key(public_id, public_pem)


async def _apply_create_side_effects(
    storage: ObjectStore,
    keystore: KeyStore,
    namespace_id: str,
    material: NamespaceKeyMaterial,
) -> None:
    store_public = settings.key_storage.store_public_keys

    await storage.create_container(namespace_container(namespace_id))

    if material.ca_key is not None:
        ca = CertificateAuthority.generate(
            common_name=f"tufhub namespace {namespace_id} root CA",
            validity_days=settings.provisioning.ca_validity_days,
            key=material.ca_key,
        )
        await storage.put(
            root_ca_cert_key(namespace_id),
            ca.ca_cert_pem.encode(),
            content_type="application/x-pem-file",
        )
        # CA public half is always kept: credential issuance reads it alongside the cert
        await _persist_key_pair(
            keystore,
            root_ca_key_id(namespace_id, KeyUse.PRIVATE),
            root_ca_key_id(namespace_id, KeyUse.PUBLIC),
            serialize_private_key(ca.ca_key).decode(),
            serialize_public_key(ca.ca_key).decode(),
        )

    for repo, keys in material.repo_keys.items():
        for role, key_pair in keys.items():
            await _persist_key_pair(
                keystore,
                key_record_id(namespace_id, repo, role, KeyUse.PRIVATE),
                key_record_id(namespace_id, repo, role, KeyUse.PUBLIC) if store_public else None,
                key_pair.private_pem,
                key_pair.public_pem,
            )


async def create_namespace(
    db: AsyncSession,
    storage: ObjectStore,
    keystore: KeyStore,
) -> Namespace:
    """Create a namespace with fresh image and director trust roots.

    Raises:
        StoreFailure: If a blob or key store call fails after the database
            commit. The namespace row stays ``pending_create``.
    """
    material = generate_key_material(with_ca=settings.provisioning.enabled)

    now = utc_now()
    namespace = Namespace(
        id=generate_id(),
        status=NamespaceStatus.PENDING_CREATE,
        created_at=now,
        updated_at=now,
    )
    db.add(namespace)
    for repo, document in material.roots.items():
        db.add(
            Metadata(
                namespace_id=namespace.id,
                repo=repo,
                role=TUFRole.ROOT,
                version=INITIAL_ROOT_VERSION,
                value=document,
                expires_at=root_expires_at(document),
            )
        )
    # Relational writes are durable before any other store is touched
    await db.commit()

    try:
        await _apply_create_side_effects(storage, keystore, namespace.id, material)
    except (ObjectStoreError, KeyStoreError) as e:
        logger.error(
            "Namespace side effects failed, left pending for reconciliation",
            namespace_id=namespace.id,
            error=str(e),
        )
        raise StoreFailure(f"Failed to provision stores for namespace {namespace.id}") from e

    namespace.status = NamespaceStatus.ACTIVE
    await db.commit()

    logger.info(
        "Namespace created",
        namespace_id=namespace.id,
        key_type=settings.tuf.key_type.value,
        provisioning_ca=material.ca_key is not None,
    )
    return namespace


async def list_namespaces(db: AsyncSession) -> list[Namespace]:
    """All namespaces, newest first."""
    result = await db.execute(select(Namespace).order_by(Namespace.created_at.desc()))
    return list(result.scalars().all())


async def _recorded_object_ids(db: AsyncSession, namespace_id: str) -> list[str]:
    result = await db.execute(select(Object.object_id).where(Object.namespace_id == namespace_id))
    return list(result.scalars().all())


async def _delete_blobs(
    storage: ObjectStore, namespace_id: str, object_ids: list[str] | None
) -> None:
    if object_ids is None:
        await storage.delete_container(namespace_container(namespace_id))
        return

    # Backend without bulk deletion: remove each recorded object at its derived key
    for object_id in object_ids:
        await storage.delete(object_storage_key(namespace_id, object_id))
    await storage.delete(root_ca_cert_key(namespace_id))


async def delete_namespace(
    db: AsyncSession,
    storage: ObjectStore,
    keystore: KeyStore,
    namespace_id: str,
) -> None:
    """Delete a namespace and its blobs and keys.

    Raises:
        NotFoundError: If the namespace does not exist.
        StoreFailure: If blob or key cleanup fails after the row is gone.
    """
    namespace = await get_namespace(db, namespace_id)
    if namespace is None:
        raise NotFoundError("Namespace", namespace_id)

    object_ids: list[str] | None = None
    if settings.storage.namespace_cleanup is NamespaceCleanup.OBJECTS:
        # Must be read before the cascade removes the rows
        object_ids = await _recorded_object_ids(db, namespace_id)

    await db.delete(namespace)
    await db.commit()

    key_ids = namespace_key_ids(namespace_id, include_public=settings.key_storage.store_public_keys)
    key_ids += root_ca_key_ids(namespace_id)

    try:
        await _delete_blobs(storage, namespace_id, object_ids)
        for key_id in key_ids:
            await keystore.delete_key(key_id)
    except (ObjectStoreError, KeyStoreError) as e:
        logger.error(
            "Namespace row deleted but cleanup failed, resources orphaned",
            namespace_id=namespace_id,
            error=str(e),
        )
        raise StoreFailure(f"Failed to clean up stores for namespace {namespace_id}") from e

    logger.info(
        "Namespace deleted",
        namespace_id=namespace_id,
        keys_deleted=len(key_ids),
        objects_deleted=len(object_ids) if object_ids is not None else None,
    )
