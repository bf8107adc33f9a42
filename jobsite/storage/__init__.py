"""
Storage backends for jobsite collections.

Handles:
- In-memory documents (tests, local development)
- SQL rows through async SQLAlchemy (SQLite by default)
- Redis keys
"""

import logging
from typing import Optional

from config import settings

from .base import StoragePort
from .memory import MemoryStorage
from .exceptions import (
    StorageError,
    StorageConnectionError,
    StorageOperationError,
    StorageConfigurationError,
)

logger = logging.getLogger(__name__)


def create_storage(backend: Optional[str] = None) -> StoragePort:
    """
    Build a storage backend from settings.

    Args:
        backend: "memory", "sql" or "redis" (defaults to settings.storage_backend)
    """
    backend = (backend or settings.storage_backend).lower()

    if backend == "memory":
        return MemoryStorage(prefix=settings.storage_prefix)
    if backend == "sql":
        from .sql import SQLStorage
        return SQLStorage(
            settings.database_url,
            prefix=settings.storage_prefix,
            echo=settings.database_echo,
        )
    if backend == "redis":
        from .redis_store import RedisStorage
        return RedisStorage(settings.redis_url, prefix=settings.storage_prefix)

    raise StorageConfigurationError(f"Unknown storage backend: {backend}")


# Singleton instance
_storage: Optional[StoragePort] = None


def get_storage() -> StoragePort:
    """Get the storage singleton."""
    global _storage
    if _storage is None:
        _storage = create_storage()
        logger.info(f"Using {type(_storage).__name__}")
    return _storage


def set_storage(storage: Optional[StoragePort]) -> None:
    """Replace the storage singleton (tests, custom wiring)."""
    global _storage
    _storage = storage


async def close_storage() -> None:
    """Close the storage singleton."""
    global _storage
    if _storage:
        await _storage.close()
        _storage = None


__all__ = [
    "StoragePort",
    "MemoryStorage",
    "StorageError",
    "StorageConnectionError",
    "StorageOperationError",
    "StorageConfigurationError",
    "create_storage",
    "get_storage",
    "set_storage",
    "close_storage",
]
