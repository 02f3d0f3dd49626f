"""Read-only SQLAlchemy repository joining URL rankings to keyword metrics."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from citelens.application.interfaces import KeywordRepository
from citelens.domain.entities import KeywordMatch
from citelens.infrastructure.database.models import KeywordModel, UrlRankingModel


class SQLAlchemyKeywordRepository(KeywordRepository):
    """Implements the KeywordRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_for_urls(self, urls: list[str]) -> list[KeywordMatch]:
        if not urls:
            return []

        stmt = (
            select(
                KeywordModel.keyword,
                UrlRankingModel.url,
                KeywordModel.search_volume,
                KeywordModel.difficulty,
                KeywordModel.cpc,
                UrlRankingModel.position,
            )
            .select_from(UrlRankingModel)
            .join(KeywordModel, KeywordModel.id == UrlRankingModel.keyword_id)
            .where(UrlRankingModel.url.in_(urls))
            .distinct()
            .order_by(KeywordModel.search_volume.desc().nulls_last(), KeywordModel.keyword)
        )
        result = await self._session.execute(stmt)
        return [
            KeywordMatch(
                keyword=row.keyword,
                url=row.url,
                search_volume=row.search_volume,
                difficulty=row.difficulty,
                cpc=row.cpc,
                position=row.position,
            )
            for row in result.all()
        ]
