"""Domain entities for similarity search results."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class VectorIndexMatch:
    """A raw hit returned by the vector index, before enrichment."""

    id: str
    score: float  # cosine similarity, -1.0 – 1.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SimilarityMatch:
    """A search hit joined back to its durable chunk content and metadata."""

    fingerprint: str
    score: float  # cosine similarity, -1.0 – 1.0
    content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
