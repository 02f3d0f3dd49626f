"""SQLAlchemy ORM model for citation analyses."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from citelens.infrastructure.database.base import Base


class AnalysisModel(Base):
    """ORM model — maps to the 'analyses' table.

    ``citation_id`` is unique: re-analyzing a citation overwrites its row.
    """

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    citation_id: Mapped[int] = mapped_column(
        ForeignKey("citations.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    similar_chunks: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    keyword_matches: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    reasoning_hypothesis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    recommendations: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    hypothesis_status: Mapped[str] = mapped_column(String(20), nullable=False, default="ok")
    recommendations_status: Mapped[str] = mapped_column(String(20), nullable=False, default="ok")
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

    def __repr__(self) -> str:
        return f"<AnalysisModel(id={self.id}, citation_id={self.citation_id})>"
