"""
Redis storage backend.

Documents are stored as JSON strings under prefixed keys, without a TTL.
"""

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .base import StoragePort
from .exceptions import StorageConnectionError, StorageOperationError

logger = logging.getLogger(__name__)


class RedisStorage(StoragePort):
    """Documents stored as JSON strings in Redis."""

    def __init__(self, redis_url: str, prefix: str = "", client: Optional[redis.Redis] = None):
        super().__init__(prefix)
        self.redis_url = redis_url
        self._client = client

    async def initialize(self) -> bool:
        await self._get_client()
        return True

    async def _get_client(self) -> redis.Redis:
        """Get or create the Redis client."""
        if self._client is None:
            try:
                self._client = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=50,
                    socket_timeout=5,
                    socket_connect_timeout=5,
                )
                await self._client.ping()
                logger.info("Redis storage connected")
            except Exception as e:
                logger.error(f"Failed to connect to Redis: {e}")
                self._client = None
                raise StorageConnectionError(f"Cannot connect to Redis: {e}") from e

        return self._client

    async def close(self) -> None:
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except Exception as e:
                logger.error(f"Error closing Redis: {e}")
            finally:
                self._client = None

    async def get(self, key: str) -> Optional[Any]:
        client = await self._get_client()
        try:
            value = await client.get(self.full_key(key))
        except RedisError as e:
            raise StorageOperationError(f"Failed to read {key}: {e}") from e

        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt document under {key}, treating as empty: {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        client = await self._get_client()
        try:
            await client.set(self.full_key(key), json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageOperationError(f"Failed to serialize value for {key}: {e}") from e
        except RedisError as e:
            raise StorageOperationError(f"Failed to write {key}: {e}") from e

    async def delete(self, key: str) -> bool:
        client = await self._get_client()
        try:
            return bool(await client.delete(self.full_key(key)))
        except RedisError as e:
            raise StorageOperationError(f"Failed to delete {key}: {e}") from e

    async def health_check(self) -> Dict[str, Any]:
        try:
            client = await self._get_client()
            await client.ping()
            return {"status": "healthy", "backend": "redis"}
        except Exception as e:
            return {"status": "unhealthy", "backend": "redis", "error": str(e)}
