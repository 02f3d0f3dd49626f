"""Pydantic schemas for embedding ingestion and similarity search."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ── Request Schemas ──────────────────────────────────────────────────


class GenerateEmbeddingsRequest(BaseModel):
    """Request body for chunking and embedding a document."""

    text: str = Field(..., min_length=1, description="Document text to chunk and embed")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Source metadata copied onto every chunk (e.g. source_url, citation_id)",
    )


class SearchRequest(BaseModel):
    """Request body for a similarity search."""

    query: str = Field(..., min_length=1)
    top_k: int = Field(default=10, ge=1, le=100)
    filter: dict[str, Any] | None = Field(default=None, description="Equality filter on metadata")


# ── Response Schemas ─────────────────────────────────────────────────


class EmbeddingRecordResponse(BaseModel):
    """A stored embedding record, without its vector."""

    fingerprint: str
    content: str
    metadata: dict[str, Any] = {}
    dimensions: int
    indexed: bool
    created_at: datetime


class SimilarityMatchResponse(BaseModel):
    """A single similarity search hit."""

    fingerprint: str
    score: float
    content: str = ""
    metadata: dict[str, Any] = {}
