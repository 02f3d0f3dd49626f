"""pgvector-backed vector index — a separate table queried by cosine distance.

Used when no external vector service is configured. The table is written
under its own session so it never shares a transaction with the durable
'embeddings' table.
"""

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citelens.application.interfaces.vector_index import VectorIndex
from citelens.domain.entities.similarity import VectorIndexMatch
from citelens.domain.exceptions import IndexUnavailableError
from citelens.infrastructure.database.models.vector_index_entry import VectorIndexEntryModel

logger = logging.getLogger(__name__)


class PgVectorIndex(VectorIndex):
    """Concrete vector index backed by PostgreSQL + pgvector."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @property
    def backend_name(self) -> str:
        return "pgvector"

    async def ensure_ready(self) -> None:
        # Table and HNSW index are created with the rest of the schema.
        logger.info("pgvector index ready: %s", VectorIndexEntryModel.__tablename__)

    async def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        stmt = (
            pg_insert(VectorIndexEntryModel)
            .values(
                {
                    VectorIndexEntryModel.id: id,
                    VectorIndexEntryModel.embedding: vector,
                    VectorIndexEntryModel.metadata_: metadata,
                }
            )
            .on_conflict_do_update(
                index_elements=["id"],
                set_={
                    VectorIndexEntryModel.embedding: vector,
                    VectorIndexEntryModel.metadata_: metadata,
                },
            )
        )
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise IndexUnavailableError("upsert", str(e)) from e

    async def query(
        self,
        vector: list[float],
        top_k: int = 10,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorIndexMatch]:
        """Find entries most similar to ``vector``.

        1 - cosine_distance gives cosine similarity (-1..1).
        """
        if top_k <= 0:
            return []

        distance = VectorIndexEntryModel.embedding.cosine_distance(vector)
        stmt = select(
            VectorIndexEntryModel.id,
            VectorIndexEntryModel.metadata_.label("entry_metadata"),
            (1 - distance).label("similarity"),
        )
        if filter:
            stmt = stmt.where(VectorIndexEntryModel.metadata_.contains(filter))
        stmt = stmt.order_by(distance, VectorIndexEntryModel.id).limit(top_k)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            raise IndexUnavailableError("query", str(e)) from e

        return [
            VectorIndexMatch(
                id=row.id,
                score=float(row.similarity),
                metadata=row.entry_metadata or {},
            )
            for row in rows
        ]

    async def delete_by_ids(self, ids: list[str]) -> None:
        if not ids:
            return
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(VectorIndexEntryModel).where(VectorIndexEntryModel.id.in_(ids))
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise IndexUnavailableError("delete", str(e)) from e
        logger.info("Deleted %d index entries", result.rowcount)
