"""Pydantic schemas for citation analysis and performance prediction."""

from datetime import datetime

from pydantic import BaseModel, Field

from citelens.application.schemas.embeddings import SimilarityMatchResponse


# ── Request Schemas ──────────────────────────────────────────────────


class PredictRequest(BaseModel):
    """Request body for predicting how likely content is to be cited."""

    content: str = Field(..., min_length=1)
    target_query: str = Field(..., min_length=1)


# ── Response Schemas ─────────────────────────────────────────────────


class KeywordMatchSchema(BaseModel):
    keyword: str
    url: str
    search_volume: int | None = None
    difficulty: float | None = None
    cpc: float | None = None
    position: int | None = None


class RecommendationSchema(BaseModel):
    action: str
    reason: str = ""
    impact: str = ""
    priority: str = "medium"


class AnalysisResponse(BaseModel):
    """Stored analysis of a single citation."""

    id: int | None = None
    citation_id: int
    similar_chunks: list[SimilarityMatchResponse] = []
    keyword_matches: list[KeywordMatchSchema] = []
    reasoning_hypothesis: str = ""
    recommendations: list[RecommendationSchema] = []
    hypothesis_status: str = "ok"
    recommendations_status: str = "ok"
    is_partial: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContentGapSchema(BaseModel):
    missing: str
    why_it_matters: str = ""
    how_to_address: str = ""


class SuggestionSchema(BaseModel):
    type: str
    priority: str
    suggestion: str
    impact: str


class PerformancePredictionResponse(BaseModel):
    """Predicted citation probability with gaps and suggestions."""

    citation_probability: float
    similar_content_analyzed: int
    cited_matches: int = 0
    gaps: list[ContentGapSchema] = []
    suggestions: list[SuggestionSchema] = []
    gaps_status: str = "ok"
