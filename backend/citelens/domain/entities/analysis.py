"""Domain entities produced by the analysis and prediction pipelines."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from citelens.domain.entities.citation import KeywordMatch
from citelens.domain.entities.reasoning import ResultStatus
from citelens.domain.entities.similarity import SimilarityMatch


def _first_str(data: dict[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return default


@dataclass
class Recommendation:
    """One actionable change that should raise citation probability."""

    action: str
    reason: str = ""
    impact: str = ""
    priority: str = "medium"  # "high" | "medium" | "low"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recommendation":
        """Build from a generated JSON object, tolerating key variations."""
        return cls(
            action=_first_str(data, "action", "what", "recommendation", "title"),
            reason=_first_str(data, "reason", "why", "rationale"),
            impact=_first_str(data, "impact", "expected_impact", "expectedImpact"),
            priority=_first_str(data, "priority", default="medium").lower(),
        )


@dataclass
class ContentGap:
    """Something similar cited content covers that the candidate content lacks."""

    missing: str
    why_it_matters: str = ""
    how_to_address: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentGap":
        return cls(
            missing=_first_str(data, "missing", "what_is_missing", "gap", "what"),
            why_it_matters=_first_str(data, "why_it_matters", "why", "reason"),
            how_to_address=_first_str(data, "how_to_address", "how", "fix"),
        )


@dataclass
class Suggestion:
    """An optimization hint, either rule-based or derived from a content gap."""

    type: str  # "structure" | "readability" | "content" | "overall"
    priority: str
    suggestion: str
    impact: str


@dataclass
class Analysis:
    """The reasoning produced for a single citation.

    Exactly one Analysis exists per citation; re-running the pipeline
    overwrites it in place. The ``*_status`` fields record whether the
    matching field holds generated content or a placeholder.
    """

    citation_id: int
    similar_chunks: list[SimilarityMatch] = field(default_factory=list)
    keyword_matches: list[KeywordMatch] = field(default_factory=list)
    reasoning_hypothesis: str = ""
    recommendations: list[Recommendation] = field(default_factory=list)
    hypothesis_status: str = ResultStatus.OK
    recommendations_status: str = ResultStatus.OK
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_partial(self) -> bool:
        return (
            self.hypothesis_status != ResultStatus.OK
            or self.recommendations_status != ResultStatus.OK
        )


@dataclass
class PerformancePrediction:
    """How likely a piece of content is to be cited, with gaps and suggestions."""

    citation_probability: float
    similar_content_analyzed: int
    cited_matches: int = 0
    gaps: list[ContentGap] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    gaps_status: str = ResultStatus.OK
