"""FastAPI dependencies shared by the routers.

Authentication is handled in front of this service. The gateway that
terminates device TLS resolves the device's namespace and forwards it in
the ``X-Namespace`` header; routes that carry no namespace in their path
read it from there.
"""

from fastapi import Header, HTTPException, status

from tufhub.logging_config import bind_namespace

NAMESPACE_HEADER = "X-Namespace"


async def get_namespace_scope(
    x_namespace: str | None = Header(default=None, alias=NAMESPACE_HEADER),
) -> str:
    """Namespace of the calling device, taken from the forwarded header."""
    if not x_namespace:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{NAMESPACE_HEADER} header is required",
        )
    bind_namespace(x_namespace)
    return x_namespace
