from .chat_provider import ChatProvider
from .citation_repository import AnalysisRepository, CitationRepository, KeywordRepository
from .embedding_provider import EmbeddingProvider
from .embedding_record_repository import EmbeddingRecordRepository
from .ephemeral_cache import EphemeralCache
from .vector_index import VectorIndex

__all__ = [
    "ChatProvider",
    "AnalysisRepository",
    "CitationRepository",
    "KeywordRepository",
    "EmbeddingProvider",
    "EmbeddingRecordRepository",
    "EphemeralCache",
    "VectorIndex",
]
