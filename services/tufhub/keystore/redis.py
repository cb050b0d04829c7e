"""
Redis key storage backend for tufhub.

Secrets are plain string values under ``{prefix}{key_id}`` with no TTL.
Uses the shared client from tufhub.redis.client.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from tufhub.keystore.protocol import KeyNotFoundError, KeyStoreError
from tufhub.logging_config import get_logger

logger = get_logger(__name__)


class RedisKeyStore:
    """Key store backed by Redis."""

    def __init__(self, client: aioredis.Redis, prefix: str = "tufhub:key:") -> None:
        self._client = client
        self._prefix = prefix

    def _name(self, key_id: str) -> str:
        return self._prefix + key_id

    async def put_key(self, key_id: str, value: str) -> None:
        try:
            await self._client.set(self._name(key_id), value)
        except RedisError as e:
            raise KeyStoreError(str(e)) from e

    async def get_key(self, key_id: str) -> str:
        try:
            value = await self._client.get(self._name(key_id))
        except RedisError as e:
            raise KeyStoreError(str(e)) from e
        if value is None:
            raise KeyNotFoundError(key_id)
        return value

    async def delete_key(self, key_id: str) -> None:
        try:
            await self._client.delete(self._name(key_id))
        except RedisError as e:
            raise KeyStoreError(str(e)) from e

    async def key_exists(self, key_id: str) -> bool:
        try:
            return bool(await self._client.exists(self._name(key_id)))
        except RedisError as e:
            raise KeyStoreError(str(e)) from e

    async def close(self) -> None:
        """The Redis connection pool is owned by tufhub.redis.client."""
