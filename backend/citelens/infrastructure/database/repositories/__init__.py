from .embedding_record_repository import PgEmbeddingRecordRepository
from .citation_repository import SQLAlchemyCitationRepository
from .keyword_repository import SQLAlchemyKeywordRepository
from .analysis_repository import SQLAlchemyAnalysisRepository

__all__ = [
    "PgEmbeddingRecordRepository",
    "SQLAlchemyCitationRepository",
    "SQLAlchemyKeywordRepository",
    "SQLAlchemyAnalysisRepository",
]
