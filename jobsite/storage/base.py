"""
Storage port.

Every collection (projects, schedule items, messages, daily logs and the two
read ledgers) is a JSON document stored under one namespaced key. Backends
only need to get, set and delete whole documents; repositories handle the
record-level logic on top.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, Optional


class StoragePort(ABC):
    """Key-value storage for JSON-serializable documents."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def full_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def lock(self, key: str) -> asyncio.Lock:
        """
        Write lock for one document.

        Repositories hold it across read, modify and write so overlapping
        updates to the same collection are applied one after another.
        Locks are per process.
        """
        return self._locks[key]

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Read a document.

        Args:
            key: Collection key (prefix is added automatically)

        Returns:
            Decoded document, or None if the key has never been written
        """

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Overwrite a document. Last write wins."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a document. Returns False when it did not exist."""

    async def initialize(self) -> bool:
        """Prepare the backend. Returns True when it is usable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": type(self).__name__}
