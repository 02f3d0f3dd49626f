"""Abstract interface (port) for the fast, TTL-bounded cache layer."""

from abc import ABC, abstractmethod
from typing import Any


class EphemeralCache(ABC):
    """Port for a key/value cache whose entries expire after a TTL."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value for ``ttl`` seconds (implementation default when None)."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...
