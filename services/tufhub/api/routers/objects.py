"""Content-addressed object endpoints (ostree-compatible).

Endpoints:
    PUT|POST /api/v0/treehub/{namespace}/objects/{prefix}/{suffix}   upload
    HEAD     /api/v0/treehub/{namespace}/objects/{prefix}/{suffix}   exists
    GET      /api/v0/treehub/{namespace}/objects/{prefix}/{suffix}   download
    GET      /api/v0/treehub/objects/{prefix}/{suffix}   download, namespace from X-Namespace
    PUT|POST /api/v0/treehub/{namespace}/summary   upload summary
    HEAD     /api/v0/treehub/{namespace}/summary   summary exists
    GET      /api/v0/treehub/{namespace}/summary   download summary
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.api.dependencies import get_namespace_scope
from tufhub.db.session import get_db
from tufhub.errors import ConsistencyFault, NotFoundError, StoreFailure, ValidationError
from tufhub.logging_config import bind_namespace, get_logger
from tufhub.services.object_service import download_object, object_exists, upload_object
from tufhub.storage import get_storage
from tufhub.storage.keys import SUMMARY_OBJECT_ID, object_id_from_parts
from tufhub.storage.protocol import ObjectStore

router = APIRouter(tags=["objects"])
logger = get_logger(__name__)

OCTET_STREAM = "application/octet-stream"


def _object_id(prefix: str, suffix: str, invalid_status: int) -> str:
    try:
        return object_id_from_parts(prefix, suffix)
    except ValidationError as e:
        raise HTTPException(status_code=invalid_status, detail=str(e)) from e


async def _upload(
    db: AsyncSession,
    storage: ObjectStore,
    namespace_id: str,
    object_id: str,
    request: Request,
) -> Response:
    bind_namespace(namespace_id)
    content = await request.body()
    try:
        await upload_object(
            db,
            storage,
            namespace_id,
            object_id,
            content,
            request.headers.get("content-length"),
        )
    except ValidationError as e:
        logger.warning("Rejected object upload", object_id=object_id, reason=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store object",
        ) from e

    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _head(db: AsyncSession, namespace_id: str, object_id: str) -> Response:
    bind_namespace(namespace_id)
    if not await object_exists(db, namespace_id, object_id):
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(status_code=status.HTTP_200_OK)


async def _download(
    db: AsyncSession,
    storage: ObjectStore,
    namespace_id: str,
    object_id: str,
) -> Response:
    bind_namespace(namespace_id)
    try:
        content = await download_object(db, storage, namespace_id, object_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ConsistencyFault as e:
        # Already logged by the service; the request fails, nothing is repaired
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Object is recorded but its content is unavailable",
        ) from e

    return Response(content=content, media_type=OCTET_STREAM)


# --- Objects ---


@router.api_route(
    "/api/v0/treehub/{namespace_id}/objects/{prefix}/{suffix}",
    methods=["PUT", "POST"],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def upload_object_endpoint(
    namespace_id: str,
    prefix: str,
    suffix: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
) -> Response:
    """Upload an object. The request's Content-Length is recorded as its size."""
    return await _upload(
        db,
        storage,
        namespace_id,
        _object_id(prefix, suffix, status.HTTP_400_BAD_REQUEST),
        request,
    )


@router.head("/api/v0/treehub/{namespace_id}/objects/{prefix}/{suffix}")
async def head_object_endpoint(
    namespace_id: str,
    prefix: str,
    suffix: str,
    db: AsyncSession = Depends(get_db),
) -> Response:
    return await _head(db, namespace_id, _object_id(prefix, suffix, status.HTTP_404_NOT_FOUND))


@router.get("/api/v0/treehub/{namespace_id}/objects/{prefix}/{suffix}")
async def download_object_endpoint(
    namespace_id: str,
    prefix: str,
    suffix: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
) -> Response:
    return await _download(
        db, storage, namespace_id, _object_id(prefix, suffix, status.HTTP_404_NOT_FOUND)
    )


@router.get("/api/v0/treehub/objects/{prefix}/{suffix}")
async def download_scoped_object_endpoint(
    prefix: str,
    suffix: str,
    namespace_id: str = Depends(get_namespace_scope),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
) -> Response:
    """Download for devices, which address objects without a namespace in the path."""
    return await _download(
        db, storage, namespace_id, _object_id(prefix, suffix, status.HTTP_404_NOT_FOUND)
    )


# --- Summary ---


@router.api_route(
    "/api/v0/treehub/{namespace_id}/summary",
    methods=["PUT", "POST"],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def upload_summary_endpoint(
    namespace_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
) -> Response:
    return await _upload(db, storage, namespace_id, SUMMARY_OBJECT_ID, request)


@router.head("/api/v0/treehub/{namespace_id}/summary")
async def head_summary_endpoint(
    namespace_id: str,
    db: AsyncSession = Depends(get_db),
) -> Response:
    return await _head(db, namespace_id, SUMMARY_OBJECT_ID)


@router.get("/api/v0/treehub/{namespace_id}/summary")
async def download_summary_endpoint(
    namespace_id: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
) -> Response:
    return await _download(db, storage, namespace_id, SUMMARY_OBJECT_ID)
