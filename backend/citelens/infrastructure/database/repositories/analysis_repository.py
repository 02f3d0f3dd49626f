"""SQLAlchemy repository for analyses — one row per citation, latest run wins."""

import logging
from dataclasses import asdict
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from citelens.application.interfaces import AnalysisRepository
from citelens.domain.entities import Analysis, KeywordMatch, Recommendation, SimilarityMatch
from citelens.infrastructure.database.models import AnalysisModel

logger = logging.getLogger(__name__)


class SQLAlchemyAnalysisRepository(AnalysisRepository):
    """Implements the AnalysisRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: AnalysisModel) -> Analysis:
        """Map ORM model → domain entity."""
        return Analysis(
            id=model.id,
            citation_id=model.citation_id,
            similar_chunks=[_match_from_json(c) for c in model.similar_chunks or []],
            keyword_matches=[KeywordMatch(**k) for k in model.keyword_matches or []],
            reasoning_hypothesis=model.reasoning_hypothesis,
            recommendations=[Recommendation(**r) for r in model.recommendations or []],
            hypothesis_status=model.hypothesis_status,
            recommendations_status=model.recommendations_status,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def get_by_citation(self, citation_id: int) -> Analysis | None:
        result = await self._session.execute(
            select(AnalysisModel).where(AnalysisModel.citation_id == citation_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def upsert(self, analysis: Analysis) -> Analysis:
        stmt = self.upsert_statement(analysis)
        result = await self._session.scalars(stmt, execution_options={"populate_existing": True})
        model = result.one()
        await self._session.flush()
        logger.info("Stored analysis %s for citation %s", model.id, analysis.citation_id)
        return self._to_entity(model)

    @staticmethod
    def upsert_statement(analysis: Analysis):
        """INSERT … ON CONFLICT (citation_id) DO UPDATE with every analysis field."""
        values: dict[Any, Any] = {
            AnalysisModel.similar_chunks: [asdict(m) for m in analysis.similar_chunks],
            AnalysisModel.keyword_matches: [asdict(k) for k in analysis.keyword_matches],
            AnalysisModel.reasoning_hypothesis: analysis.reasoning_hypothesis,
            AnalysisModel.recommendations: [asdict(r) for r in analysis.recommendations],
            AnalysisModel.hypothesis_status: analysis.hypothesis_status,
            AnalysisModel.recommendations_status: analysis.recommendations_status,
        }
        return (
            pg_insert(AnalysisModel)
            .values({AnalysisModel.citation_id: analysis.citation_id, **values})
            .on_conflict_do_update(
                index_elements=["citation_id"],
                set_={**values, AnalysisModel.updated_at: func.now()},
            )
            .returning(AnalysisModel)
        )


def _match_from_json(data: dict[str, Any]) -> SimilarityMatch:
    return SimilarityMatch(
        fingerprint=data.get("fingerprint", ""),
        score=float(data.get("score", 0.0)),
        content=data.get("content", ""),
        metadata=data.get("metadata") or {},
    )
