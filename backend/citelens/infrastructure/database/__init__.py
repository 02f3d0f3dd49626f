from .base import Base
from .session import engine, async_session_factory, get_db_session, init_db
from .models import (
    AnalysisModel,
    CitationModel,
    EmbeddingRecordModel,
    KeywordModel,
    UrlRankingModel,
    VectorIndexEntryModel,
)

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db_session",
    "init_db",
    "AnalysisModel",
    "CitationModel",
    "EmbeddingRecordModel",
    "KeywordModel",
    "UrlRankingModel",
    "VectorIndexEntryModel",
]
