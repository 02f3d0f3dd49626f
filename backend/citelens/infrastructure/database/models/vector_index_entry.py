"""SQLAlchemy ORM model for the pgvector-backed vector index."""

from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from citelens.config import get_settings
from citelens.infrastructure.database.base import Base

_DIMENSIONS = get_settings().embedding_dimensions


class VectorIndexEntryModel(Base):
    """Index-side copy of an embedding, keyed by fingerprint.

    Kept apart from the 'embeddings' table so the index can lag or be
    rebuilt without touching durable records.
    """

    __tablename__ = "vector_index_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    embedding: Mapped[list[float]] = mapped_column(Vector(_DIMENSIONS), nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )

    __table_args__ = (
        Index(
            "idx_vector_index_entries_hnsw",
            "embedding",
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )


Index(
    "idx_vector_index_entries_metadata",
    VectorIndexEntryModel.metadata_,
    postgresql_using="gin",
)
