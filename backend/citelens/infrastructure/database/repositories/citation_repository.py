"""Read-only SQLAlchemy repository for tracked citations."""

from sqlalchemy.ext.asyncio import AsyncSession

from citelens.application.interfaces import CitationRepository
from citelens.domain.entities import Citation
from citelens.infrastructure.database.models import CitationModel


class SQLAlchemyCitationRepository(CitationRepository):
    """Implements the CitationRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: CitationModel) -> Citation:
        """Map ORM model → domain entity."""
        return Citation(
            id=model.id,
            query=model.query,
            text=model.citation_text,
            source_url=model.source_url,
            position=model.position,
            mode_type=model.ai_mode_type,
            domain_id=model.domain_id,
            created_at=model.created_at,
        )

    async def get_by_id(self, citation_id: int) -> Citation | None:
        result = await self._session.get(CitationModel, citation_id)
        return self._to_entity(result) if result else None
