"""Abstract interface (port) for the external similarity index."""

from abc import ABC, abstractmethod
from typing import Any

from citelens.domain.entities.similarity import VectorIndexMatch


class VectorIndex(ABC):
    """Port for the nearest-neighbour search backend.

    Implementations are the only components that talk to the index. They
    must not assume the index shares a transaction with the durable store,
    and they report every transport or backend failure as
    IndexUnavailableError.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @abstractmethod
    async def ensure_ready(self) -> None:
        """Create the collection/table if it does not exist yet."""
        ...

    @abstractmethod
    async def upsert(
        self, id: str, vector: list[float], metadata: dict[str, Any]
    ) -> None:
        """Insert or replace the entry with this id. Idempotent."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 10,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorIndexMatch]:
        """Top-K cosine query.

        Args:
            vector: The query vector.
            top_k: Soft cap — the backend may return fewer.
            filter: Optional equality filter on entry metadata.

        Returns:
            Matches ordered by strictly non-increasing score.
        """
        ...

    @abstractmethod
    async def delete_by_ids(self, ids: list[str]) -> None:
        """Delete entries by id. Unknown ids are ignored."""
        ...
