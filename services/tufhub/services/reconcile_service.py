"""Reconciliation of namespaces whose creation never finished.

A namespace left ``pending_create`` past the grace period had its blob or
key side effects interrupted. If every expected resource turns out to be
present the row is promoted to ``active``; otherwise it is reported. Keys
are never regenerated here: the committed root metadata already names the
original keys, so replacements would not be trusted.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.config import settings
from tufhub.db.models import Namespace, NamespaceStatus, utc_now
from tufhub.keystore.ids import namespace_key_ids, root_ca_key_ids
from tufhub.keystore.protocol import KeyStore
from tufhub.logging_config import get_logger
from tufhub.storage.keys import namespace_container, root_ca_cert_key
from tufhub.storage.protocol import ObjectStore

logger = get_logger(__name__)


@dataclass
class ReconcileResult:
    promoted: list[str] = field(default_factory=list)
    incomplete: dict[str, list[str]] = field(default_factory=dict)


async def find_pending_namespaces(db: AsyncSession, grace_seconds: int) -> list[Namespace]:
    """Namespaces still pending creation and older than the grace period."""
    cutoff = utc_now() - timedelta(seconds=grace_seconds)
    result = await db.execute(
        select(Namespace)
        .where(
            Namespace.status == NamespaceStatus.PENDING_CREATE,
            Namespace.created_at < cutoff,
        )
        .order_by(Namespace.created_at)
    )
    return list(result.scalars().all())


async def missing_resources(
    storage: ObjectStore,
    keystore: KeyStore,
    namespace_id: str,
) -> list[str]:
    """Names of the blob containers, blobs and key records a namespace should have but lacks."""
    missing: list[str] = []

    container = namespace_container(namespace_id)
    if not await storage.container_exists(container):
        missing.append(f"container:{container}")

    key_ids = namespace_key_ids(namespace_id, include_public=settings.key_storage.store_public_keys)
    if settings.provisioning.enabled:
        cert_key = root_ca_cert_key(namespace_id)
        if not await storage.exists(cert_key):
            missing.append(f"blob:{cert_key}")
        key_ids += root_ca_key_ids(namespace_id)

    for key_id in key_ids:
        if not await keystore.key_exists(key_id):
            missing.append(f"key:{key_id}")

    return missing


async def reconcile_pending_namespaces(
    db: AsyncSession,
    storage: ObjectStore,
    keystore: KeyStore,
    grace_seconds: int | None = None,
) -> ReconcileResult:
    """Promote complete pending namespaces and report incomplete ones."""
    grace = settings.reconcile_grace_seconds if grace_seconds is None else grace_seconds
    result = ReconcileResult()

    for namespace in await find_pending_namespaces(db, grace):
        missing = await missing_resources(storage, keystore, namespace.id)
        if missing:
            result.incomplete[namespace.id] = missing
            logger.error(
                "Namespace creation incomplete, operator action required",
                namespace_id=namespace.id,
                missing=missing,
            )
            continue

        namespace.status = NamespaceStatus.ACTIVE
        result.promoted.append(namespace.id)
        logger.info("Pending namespace promoted to active", namespace_id=namespace.id)

    await db.commit()
    return result
