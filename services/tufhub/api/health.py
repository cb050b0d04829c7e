"""
Health check endpoints for the tufhub API server.

Provides /health (liveness) and /ready (readiness) endpoints.
"""

from fastapi import APIRouter, Response, status

from tufhub.db.session import get_db_health
from tufhub.keystore import get_keystore_or_none
from tufhub.logging_config import get_logger
from tufhub.redis.client import get_redis_health
from tufhub.storage import get_storage_or_none

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    """Liveness endpoint.

    Returns 200 if the API server is running.
    """
    return {"status": "healthy"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def ready(response: Response) -> dict[str, str | dict[str, str]]:
    """Readiness endpoint.

    Checks that the database and both secondary stores are available.
    Redis is only checked when the key store runs on it.
    """
    checks: dict[str, str] = {}

    checks["database"] = "healthy" if await get_db_health() else "unhealthy"

    redis_health = await get_redis_health()
    if redis_health is not None:
        checks["redis"] = "healthy" if redis_health else "unhealthy"

    checks["storage"] = "healthy" if get_storage_or_none() is not None else "unhealthy"
    checks["keystore"] = "healthy" if get_keystore_or_none() is not None else "unhealthy"

    all_healthy = all(v == "healthy" for v in checks.values())

    if not all_healthy:
        logger.warning("Readiness check failed", checks=checks)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not ready", "checks": checks}

    return {"status": "ready", "checks": checks}
