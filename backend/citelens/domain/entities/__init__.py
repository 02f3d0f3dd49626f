from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .chunk import Chunk, EmbeddingRecord
from .citation import Citation, KeywordMatch
from .similarity import SimilarityMatch, VectorIndexMatch
from .reasoning import (
    GeneratedList,
    ListOk,
    ParseFailed,
    ReasoningResult,
    ResultStatus,
    TextOk,
    Unavailable,
)
from .analysis import (
    Analysis,
    ContentGap,
    PerformancePrediction,
    Recommendation,
    Suggestion,
)

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Chunk",
    "EmbeddingRecord",
    "Citation",
    "KeywordMatch",
    "SimilarityMatch",
    "VectorIndexMatch",
    "GeneratedList",
    "ListOk",
    "ParseFailed",
    "ReasoningResult",
    "ResultStatus",
    "TextOk",
    "Unavailable",
    "Analysis",
    "ContentGap",
    "PerformancePrediction",
    "Recommendation",
    "Suggestion",
]
