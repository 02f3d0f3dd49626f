"""Domain entities for text chunks and their durable embedding records."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class Chunk:
    """A bounded window of words cut from a larger text.

    Chunks are produced by the TextChunker and never mutated. They live only
    for the pipeline invocation that created them; what survives is the
    EmbeddingRecord keyed by the chunk's fingerprint.
    """

    text: str
    index: int
    total_chunks: int
    source_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class EmbeddingRecord:
    """The durable, content-addressed embedding of one chunk of text.

    ``fingerprint`` is unique. The vector is immutable once computed;
    re-upserting the same content only refreshes metadata and timestamps.
    ``indexed_at`` stays None until the vector index acknowledged the mirror.
    """

    fingerprint: str
    content: str
    vector: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    indexed_at: datetime | None = None

    @property
    def is_indexed(self) -> bool:
        return self.indexed_at is not None
