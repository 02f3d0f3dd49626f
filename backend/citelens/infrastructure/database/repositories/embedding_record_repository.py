"""SQLAlchemy implementation of EmbeddingRecordRepository — fingerprint-keyed upserts."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citelens.application.interfaces.embedding_record_repository import EmbeddingRecordRepository
from citelens.domain.entities.chunk import EmbeddingRecord
from citelens.infrastructure.database.models.embedding_record import EmbeddingRecordModel

logger = logging.getLogger(__name__)


class PgEmbeddingRecordRepository(EmbeddingRecordRepository):
    """Durable embedding store backed by PostgreSQL + pgvector.

    Unlike the request-scoped repositories, this one is shared by the
    process-wide EmbeddingCache, so it opens a short-lived session per
    operation instead of borrowing the request's session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _to_entity(model: EmbeddingRecordModel) -> EmbeddingRecord:
        """Map ORM model → domain entity."""
        return EmbeddingRecord(
            id=model.id,
            fingerprint=model.content_hash,
            content=model.content,
            vector=[float(v) for v in model.embedding],
            metadata=dict(model.metadata_ or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
            indexed_at=model.indexed_at,
        )

    async def get_by_fingerprint(self, fingerprint: str) -> EmbeddingRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EmbeddingRecordModel).where(EmbeddingRecordModel.content_hash == fingerprint)
            )
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None

    async def upsert(self, record: EmbeddingRecord) -> EmbeddingRecord:
        stmt = self.upsert_statement(record)

        async with self._session_factory() as session:
            try:
                result = await session.scalars(
                    stmt, execution_options={"populate_existing": True}
                )
                model = result.one()
                entity = self._to_entity(model)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.debug("Upserted embedding fp=%s id=%s", record.fingerprint[:12], entity.id)
        return entity

    @staticmethod
    def upsert_statement(record: EmbeddingRecord):
        """INSERT … ON CONFLICT (content_hash) DO UPDATE — metadata and updated_at only."""
        return (
            pg_insert(EmbeddingRecordModel)
            .values(
                {
                    EmbeddingRecordModel.content_hash: record.fingerprint,
                    EmbeddingRecordModel.content: record.content,
                    EmbeddingRecordModel.embedding: record.vector,
                    EmbeddingRecordModel.metadata_: record.metadata,
                }
            )
            .on_conflict_do_update(
                index_elements=["content_hash"],
                set_={
                    EmbeddingRecordModel.metadata_: record.metadata,
                    EmbeddingRecordModel.updated_at: func.now(),
                },
            )
            .returning(EmbeddingRecordModel)
        )

    async def mark_indexed(self, fingerprint: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(EmbeddingRecordModel)
                .where(EmbeddingRecordModel.content_hash == fingerprint)
                .values(indexed_at=func.now())
            )
            await session.commit()

    async def list_unindexed(self, limit: int = 100) -> list[EmbeddingRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EmbeddingRecordModel)
                .where(EmbeddingRecordModel.indexed_at.is_(None))
                .order_by(EmbeddingRecordModel.created_at, EmbeddingRecordModel.id)
                .limit(limit)
            )
            return [self._to_entity(row) for row in result.scalars().all()]
