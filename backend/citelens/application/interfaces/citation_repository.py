"""Repository interfaces (ports) for citation, keyword and analysis records."""

from abc import ABC, abstractmethod

from citelens.domain.entities import Analysis, Citation, KeywordMatch


class CitationRepository(ABC):
    """Read-only port onto citations tracked by the citation collaborator."""

    @abstractmethod
    async def get_by_id(self, citation_id: int) -> Citation | None:
        ...


class KeywordRepository(ABC):
    """Read-only port onto keyword rankings tracked by the keyword collaborator."""

    @abstractmethod
    async def get_for_urls(self, urls: list[str]) -> list[KeywordMatch]:
        """Keywords any of the given URLs rank for, highest search volume first."""
        ...


class AnalysisRepository(ABC):
    """Port for persisting one Analysis per citation."""

    @abstractmethod
    async def get_by_citation(self, citation_id: int) -> Analysis | None:
        ...

    @abstractmethod
    async def upsert(self, analysis: Analysis) -> Analysis:
        """Insert the analysis, or overwrite the existing one for its citation."""
        ...
