from .text_chunker import TextChunker
from .fingerprint import content_fingerprint
from .embedding_provider_facade import FallbackEmbeddingProvider
from .embedding_cache import EmbeddingCache
from .embedding_service import EmbeddingService
from .similarity_search_service import SimilaritySearchService
from .reasoning_service import ReasoningService
from .analysis_service import AnalysisService
from .prediction_service import PredictionService
from .index_reconciler import IndexReconciler

__all__ = [
    "TextChunker",
    "content_fingerprint",
    "FallbackEmbeddingProvider",
    "EmbeddingCache",
    "EmbeddingService",
    "SimilaritySearchService",
    "ReasoningService",
    "AnalysisService",
    "PredictionService",
    "IndexReconciler",
]
