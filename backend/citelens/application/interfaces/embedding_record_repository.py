"""Abstract repository interface (port) for durable embedding records."""

from abc import ABC, abstractmethod

from citelens.domain.entities.chunk import EmbeddingRecord


class EmbeddingRecordRepository(ABC):
    """Port for the durable, fingerprint-keyed embedding store."""

    @abstractmethod
    async def get_by_fingerprint(self, fingerprint: str) -> EmbeddingRecord | None:
        """Point lookup by content fingerprint. Returns None on a miss."""
        ...

    @abstractmethod
    async def upsert(self, record: EmbeddingRecord) -> EmbeddingRecord:
        """Insert a record, or refresh metadata/updated_at if the fingerprint exists.

        The stored vector is never overwritten. Returns the row as stored,
        which carries the original vector when the fingerprint already existed.
        """
        ...

    @abstractmethod
    async def mark_indexed(self, fingerprint: str) -> None:
        """Record that the vector index acknowledged this fingerprint."""
        ...

    @abstractmethod
    async def list_unindexed(self, limit: int = 100) -> list[EmbeddingRecord]:
        """Return records never acknowledged by the index, oldest first."""
        ...
