"""
AWS S3 storage backend for tufhub.

Uses aioboto3 for async I/O. All namespaces share one bucket; a namespace
container is a key prefix marked by a zero-byte ``{name}/`` object, the same
convention the S3 console uses for folders. Auth relies on the SDK credential
chain (IRSA in K8s, env vars or profile locally).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import aioboto3

from tufhub.logging_config import get_logger
from tufhub.storage.protocol import (
    ObjectMeta,
    ObjectNotFoundError,
    ObjectStoreError,
    ObjectStorePermissionError,
)

logger = get_logger(__name__)

# DeleteObjects accepts at most this many keys per call
_DELETE_BATCH_SIZE = 1000


class S3Store:
    """Object store backed by AWS S3."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        prefix: str = "",
        endpoint_url: str = "",
    ) -> None:
        self._bucket = bucket
        self._region = region
        self._prefix = prefix.strip("/")
        self._endpoint_url = endpoint_url or None

        self._session = aioboto3.Session()
        self._client: Any = None

    def _full_key(self, key: str) -> str:
        """Prepend the configured prefix to a key."""
        if self._prefix:
            return f"{self._prefix}/{key}"
        return key

    def _strip_prefix(self, full_key: str) -> str:
        """Remove the configured prefix from a full key."""
        if self._prefix and full_key.startswith(self._prefix + "/"):
            return full_key[len(self._prefix) + 1 :]
        return full_key

    @staticmethod
    def _marker_key(name: str) -> str:
        return f"{name.strip('/')}/"

    async def _get_client(self) -> Any:
        if self._client is None:
            self._client = await self._session.client(
                "s3",
                region_name=self._region,
                endpoint_url=self._endpoint_url,
            ).__aenter__()
            logger.info(
                "S3 client initialized",
                bucket=self._bucket,
                region=self._region,
            )
        return self._client

    @staticmethod
    def _translate(e: Any, key: str) -> ObjectStoreError:
        error_code = e.response.get("Error", {}).get("Code", "")
        if error_code in ("NoSuchKey", "404"):
            return ObjectNotFoundError(key)
        if error_code in ("AccessDenied", "403"):
            return ObjectStorePermissionError(str(e))
        return ObjectStoreError(str(e))

    async def create_container(self, name: str) -> None:
        client = await self._get_client()
        try:
            await client.put_object(
                Bucket=self._bucket, Key=self._full_key(self._marker_key(name)), Body=b""
            )
        except client.exceptions.ClientError as e:
            raise self._translate(e, name) from e

    async def delete_container(self, name: str) -> None:
        client = await self._get_client()
        full_prefix = self._full_key(self._marker_key(name))

        paginator = client.get_paginator("list_objects_v2")
        batch: list[dict[str, str]] = []
        deleted = 0
        try:
            async for page in paginator.paginate(Bucket=self._bucket, Prefix=full_prefix):
                for obj in page.get("Contents", []):
                    batch.append({"Key": obj["Key"]})
                    if len(batch) == _DELETE_BATCH_SIZE:
                        await client.delete_objects(Bucket=self._bucket, Delete={"Objects": batch})
                        deleted += len(batch)
                        batch = []
            if batch:
                await client.delete_objects(Bucket=self._bucket, Delete={"Objects": batch})
                deleted += len(batch)
        except client.exceptions.ClientError as e:
            raise self._translate(e, name) from e

        logger.debug("Container deleted", container=name, objects=deleted)

    async def container_exists(self, name: str) -> bool:
        return await self.exists(self._marker_key(name))

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> ObjectMeta:
        client = await self._get_client()
        full_key = self._full_key(key)

        put_kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": full_key,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            put_kwargs["Metadata"] = metadata

        try:
            response = await client.put_object(**put_kwargs)
        except client.exceptions.ClientError as e:
            raise self._translate(e, key) from e

        etag = response.get("ETag", "").strip('"')

        return ObjectMeta(
            key=key,
            size_bytes=len(data),
            content_type=content_type,
            etag=etag,
            last_modified=datetime.now(UTC),
            metadata=metadata or {},
        )

    async def get(self, key: str) -> bytes:
        client = await self._get_client()
        full_key = self._full_key(key)

        try:
            response = await client.get_object(Bucket=self._bucket, Key=full_key)
            return await response["Body"].read()
        except client.exceptions.NoSuchKey as e:
            raise ObjectNotFoundError(key) from e
        except client.exceptions.ClientError as e:
            raise self._translate(e, key) from e

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        full_key = self._full_key(key)

        try:
            await client.delete_object(Bucket=self._bucket, Key=full_key)
        except client.exceptions.ClientError as e:
            raise self._translate(e, key) from e

    async def exists(self, key: str) -> bool:
        client = await self._get_client()
        full_key = self._full_key(key)

        try:
            await client.head_object(Bucket=self._bucket, Key=full_key)
            return True
        except client.exceptions.ClientError as e:
            error = self._translate(e, key)
            if isinstance(error, ObjectNotFoundError):
                return False
            raise error from e

    async def list_prefix(self, prefix: str) -> list[ObjectMeta]:
        client = await self._get_client()
        full_prefix = self._full_key(prefix)
        results: list[ObjectMeta] = []

        paginator = client.get_paginator("list_objects_v2")
        async for page in paginator.paginate(Bucket=self._bucket, Prefix=full_prefix):
            for obj in page.get("Contents", []):
                key = self._strip_prefix(obj["Key"])
                if key.endswith("/"):
                    continue
                results.append(
                    ObjectMeta(
                        key=key,
                        size_bytes=obj.get("Size", 0),
                        content_type="application/octet-stream",
                        etag=obj.get("ETag", "").strip('"'),
                        last_modified=obj.get("LastModified", datetime.now(UTC)),
                    )
                )

        return results

    async def close(self) -> None:
        if self._client is not None:
            await self._client.__aexit__(None, None, None)
            self._client = None
            logger.info("S3 client closed")
