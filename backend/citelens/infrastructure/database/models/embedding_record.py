"""SQLAlchemy ORM model for content-addressed embedding records."""

from datetime import datetime, timezone
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from citelens.config import get_settings
from citelens.infrastructure.database.base import Base

_DIMENSIONS = get_settings().embedding_dimensions


class EmbeddingRecordModel(Base):
    """ORM model — maps to the 'embeddings' table.

    One row per distinct chunk text. ``content_hash`` is the sha256
    fingerprint of the content; ``indexed_at`` stays NULL until the
    external vector index acknowledged the mirror write.
    """

    __tablename__ = "embeddings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float]] = mapped_column(Vector(_DIMENSIONS), nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    indexed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_embeddings_unindexed", "created_at", postgresql_where=text("indexed_at IS NULL")),
    )

    def __repr__(self) -> str:
        return f"<EmbeddingRecordModel(id={self.id}, content_hash='{self.content_hash[:12]}')>"
