"""Service layer for content-addressed object synchronization.

Keeps the ``objects`` table and the blob store in agreement:

    ABSENT --upload starts--> UPLOADING --blob written--> UPLOADED

The row is written (and committed) before the blob, so a row can exist
for a blob that never arrived; it then stays UPLOADING until overwritten.
Existence checks read only the database and ignore status. Downloads trust
the row and treat a missing blob as a consistency fault rather than as
absence.
"""

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.db.models import Object, ObjectStatus, utc_now
from tufhub.errors import ConsistencyFault, NotFoundError, StoreFailure, ValidationError
from tufhub.logging_config import get_logger
from tufhub.services.namespace_service import namespace_exists
from tufhub.storage.keys import object_storage_key
from tufhub.storage.protocol import ObjectStore, ObjectStoreError

logger = get_logger(__name__)


def parse_declared_size(raw: str | int | None) -> int:
    """Validate the size a client declared for an upload (its Content-Length).

    Raises:
        ValidationError: If the size is missing, non-numeric, zero or negative.
    """
    if raw is None:
        raise ValidationError("Content-Length is required")
    try:
        size = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Content-Length is not a number: {raw!r}") from None
    if size <= 0:
        raise ValidationError("Content-Length must be greater than zero")
    return size


async def get_object(db: AsyncSession, namespace_id: str, object_id: str) -> Object | None:
    result = await db.execute(
        select(Object).where(Object.namespace_id == namespace_id, Object.object_id == object_id)
    )
    return result.scalars().first()


async def upsert_uploading(db: AsyncSession, namespace_id: str, object_id: str, size: int) -> None:
    """Create the row as UPLOADING, or reset an existing row's size and status."""
    stmt = insert(Object).values(
        namespace_id=namespace_id,
        object_id=object_id,
        size=size,
        status=ObjectStatus.UPLOADING,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Object.namespace_id, Object.object_id],
        set_={"size": size, "status": ObjectStatus.UPLOADING, "updated_at": utc_now()},
    )
    await db.execute(stmt)


async def mark_uploaded(db: AsyncSession, namespace_id: str, object_id: str) -> None:
    await db.execute(
        update(Object)
        .where(Object.namespace_id == namespace_id, Object.object_id == object_id)
        .values(status=ObjectStatus.UPLOADED, updated_at=utc_now())
    )


async def upload_object(
    db: AsyncSession,
    storage: ObjectStore,
    namespace_id: str,
    object_id: str,
    content: bytes,
    declared_size: str | int | None,
) -> None:
    """Record and store an object.

    Raises:
        ValidationError: Bad declared size or unknown namespace; nothing is written.
        StoreFailure: The blob write failed; the row is left UPLOADING.
    """
    size = parse_declared_size(declared_size)

    if not await namespace_exists(db, namespace_id):
        raise ValidationError(f"Namespace does not exist: {namespace_id}")

    await upsert_uploading(db, namespace_id, object_id, size)
    await db.commit()

    key = object_storage_key(namespace_id, object_id)
    try:
        await storage.put(key, content)
    except ObjectStoreError as e:
        logger.error(
            "Blob write failed, object left uploading",
            namespace_id=namespace_id,
            object_id=object_id,
            key=key,
            error=str(e),
        )
        raise StoreFailure(f"Failed to store object {object_id}") from e

    await mark_uploaded(db, namespace_id, object_id)
    await db.commit()

    logger.debug("Object uploaded", namespace_id=namespace_id, object_id=object_id, size=size)


async def object_exists(db: AsyncSession, namespace_id: str, object_id: str) -> bool:
    """Existence as recorded in the database. Status is not consulted."""
    return await get_object(db, namespace_id, object_id) is not None


async def download_object(
    db: AsyncSession,
    storage: ObjectStore,
    namespace_id: str,
    object_id: str,
) -> bytes:
    """Fetch an object's content.

    Raises:
        NotFoundError: No row for the object.
        ConsistencyFault: The row exists but the blob is missing, unreadable or empty.
    """
    record = await get_object(db, namespace_id, object_id)
    if record is None:
        raise NotFoundError("Object", object_id)

    key = object_storage_key(namespace_id, object_id)
    try:
        content = await storage.get(key)
    except ObjectStoreError as e:
        fault = ConsistencyFault(namespace_id, object_id, key)
        logger.error(
            "Object recorded but blob unreadable",
            namespace_id=namespace_id,
            object_id=object_id,
            key=key,
            status=record.status.value,
            error=str(e),
        )
        raise fault from e

    if not content:
        logger.error(
            "Object recorded but blob empty",
            namespace_id=namespace_id,
            object_id=object_id,
            key=key,
            status=record.status.value,
        )
        raise ConsistencyFault(namespace_id, object_id, key)

    return content
