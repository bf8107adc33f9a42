"""In-memory storage backend, used for tests and local development."""

import copy
import logging
from typing import Any, Dict, Optional

from .base import StoragePort

logger = logging.getLogger(__name__)


class MemoryStorage(StoragePort):
    """Keeps documents in a dict. Nothing survives a restart."""

    def __init__(self, prefix: str = ""):
        super().__init__(prefix)
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        value = self._data.get(self.full_key(key))
        # Callers mutate what they read before writing it back
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> None:
        self._data[self.full_key(key)] = copy.deepcopy(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(self.full_key(key), None) is not None

    async def clear(self) -> None:
        self._data.clear()
        logger.debug("Memory storage cleared")

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "backend": "memory",
            "keys": len(self._data),
        }
