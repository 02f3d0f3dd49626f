from .embeddings import (
    GenerateEmbeddingsRequest,
    SearchRequest,
    EmbeddingRecordResponse,
    SimilarityMatchResponse,
)
from .analysis import (
    PredictRequest,
    KeywordMatchSchema,
    RecommendationSchema,
    AnalysisResponse,
    ContentGapSchema,
    SuggestionSchema,
    PerformancePredictionResponse,
)

__all__ = [
    "GenerateEmbeddingsRequest",
    "SearchRequest",
    "EmbeddingRecordResponse",
    "SimilarityMatchResponse",
    "PredictRequest",
    "KeywordMatchSchema",
    "RecommendationSchema",
    "AnalysisResponse",
    "ContentGapSchema",
    "SuggestionSchema",
    "PerformancePredictionResponse",
]
