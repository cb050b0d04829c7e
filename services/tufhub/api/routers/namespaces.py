"""Namespace administration endpoints.

Endpoints:
    POST   /api/v0/admin/namespaces   create
    GET    /api/v0/admin/namespaces   list
    DELETE /api/v0/admin/namespaces/{namespace_id}   delete
    GET    /api/v0/admin/namespaces/{namespace_id}/provisioning-credentials   device credentials
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tufhub.db.models import Namespace
from tufhub.db.session import get_db
from tufhub.errors import NotFoundError, StoreFailure, ValidationError
from tufhub.keystore import get_keystore
from tufhub.keystore.protocol import KeyStore
from tufhub.logging_config import bind_namespace, get_logger
from tufhub.pki.bundle import ARCHIVE_MEDIA_TYPE
from tufhub.services.namespace_service import (
    create_namespace,
    delete_namespace,
    list_namespaces,
)
from tufhub.services.provisioning_service import issue_provisioning_credentials
from tufhub.storage import get_storage
from tufhub.storage.protocol import ObjectStore

router = APIRouter(tags=["namespaces"])
logger = get_logger(__name__)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _namespace_to_json(namespace: Namespace) -> dict:
    """Public view of a namespace. Lifecycle status stays internal."""
    return {
        "id": namespace.id,
        "created_at": _isoformat(namespace.created_at),
        "updated_at": _isoformat(namespace.updated_at),
    }


@router.post("/api/v0/admin/namespaces")
async def create_namespace_endpoint(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
    keystore: KeyStore = Depends(get_keystore),
) -> JSONResponse:
    """Create a namespace with fresh image and director trust roots."""
    try:
        namespace = await create_namespace(db, storage, keystore)
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Namespace recorded but its stores could not be provisioned",
        ) from e

    return JSONResponse(content=_namespace_to_json(namespace))


@router.get("/api/v0/admin/namespaces")
async def list_namespaces_endpoint(
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    namespaces = await list_namespaces(db)
    return JSONResponse(content=[_namespace_to_json(ns) for ns in namespaces])


@router.delete("/api/v0/admin/namespaces/{namespace_id}")
async def delete_namespace_endpoint(
    namespace_id: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
    keystore: KeyStore = Depends(get_keystore),
) -> Response:
    bind_namespace(namespace_id)
    try:
        await delete_namespace(db, storage, keystore, namespace_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Namespace deleted but cleanup of its stores failed",
        ) from e

    return Response(status_code=status.HTTP_200_OK)


@router.get("/api/v0/admin/namespaces/{namespace_id}/provisioning-credentials")
async def provisioning_credentials_endpoint(
    namespace_id: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStore = Depends(get_storage),
    keystore: KeyStore = Depends(get_keystore),
) -> Response:
    """Mint a device certificate chained to the namespace root CA, as a zip archive."""
    bind_namespace(namespace_id)
    try:
        archive = await issue_provisioning_credentials(db, storage, keystore, namespace_id)
    except (NotFoundError, ValidationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Namespace root CA is unavailable",
        ) from e

    return Response(
        content=archive,
        media_type=ARCHIVE_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="credentials-{namespace_id}.zip"'
        },
    )
