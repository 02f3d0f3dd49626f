"""Prediction service — estimates how likely candidate content is to be cited.

Staged flow:
  1. Chunk + embed the candidate content (through the shared cache)
  2. Retrieve cited neighbours for every chunk vector
  3. Deduplicate and score: share of neighbours that belong to a citation
  4. Identify content gaps against cited neighbours (generative, optional)
  5. Apply rule-based suggestions
"""

import asyncio
import logging

from citelens.application.services.embedding_service import EmbeddingService
from citelens.application.services.reasoning_service import ReasoningService
from citelens.application.services.similarity_search_service import SimilaritySearchService
from citelens.domain.entities import (
    ContentGap,
    EmbeddingRecord,
    ListOk,
    PerformancePrediction,
    ResultStatus,
    SimilarityMatch,
    Suggestion,
)
from citelens.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("PredictionService")

_DEFAULT_TOP_K = 10
_DEFAULT_CONCURRENCY = 4
_CITED_FILTER = {"has_citation": True}

_GAP_CONTENT_CHARS = 1000
_GAP_SAMPLES = 3
_GAP_SAMPLE_CHARS = 300

# Rule thresholds
_LONG_CONTENT_CHARS = 5000
_MAX_SENTENCES_PER_1000_CHARS = 3
_LOW_PROBABILITY = 30

_GAPS_SYSTEM_PROMPT = (
    "You are an AI content optimization expert. Always respond with valid JSON."
)

_GAPS_PROMPT = """\
Analyze the content gaps between the provided content and similar content
that has been cited in AI search results.

Target Query: {target_query}

Provided Content (first {content_chars} chars):
{content}...

Similar Cited Content Samples:
{samples}

Identify 3-5 specific content gaps. For each gap:
1. What is missing
2. Why it matters for AI citation
3. How to address it

## Response Format (strict JSON array, no markdown)

[
  {{"missing": "...", "why_it_matters": "...", "how_to_address": "..."}}
]
"""


class PredictionService:
    """Application service for content performance prediction."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        similarity_search: SimilaritySearchService,
        reasoning: ReasoningService,
        *,
        top_k: int = _DEFAULT_TOP_K,
        concurrency: int = _DEFAULT_CONCURRENCY,
    ):
        self._embedding_service = embedding_service
        self._search = similarity_search
        self._reasoning = reasoning
        self._top_k = top_k
        self._concurrency = max(1, concurrency)
        self._semaphore = asyncio.Semaphore(self._concurrency)

    async def predict_performance(self, content: str, target_query: str) -> PerformancePrediction:
        plog.separator(f"predict '{target_query[:40]}'")

        # Step 1: Chunk + embed
        with plog.timed_step(PipelineStage.EMBED, "Embedding candidate content", chars=len(content)):
            records = await self._embedding_service.embed_text(content)
        plog.stats(chunks=len(records))

        # Step 2: Retrieve cited neighbours per chunk
        with plog.timed_step(PipelineStage.RETRIEVE, "Searching cited neighbours", top_k=self._top_k):
            per_chunk = await self._search_all(records)

        # Step 3: Dedup + score
        unique = dedupe_matches(per_chunk)
        cited = [m for m in unique if m.metadata.get("citation_id")]
        probability = citation_probability(len(cited), len(unique))
        plog.stats(unique_matches=len(unique), cited=len(cited), probability=f"{probability:.1f}%")

        # Step 4: Gaps
        gaps, gaps_status = await self._identify_gaps(content, cited, target_query)

        # Step 5: Suggestions
        suggestions = build_suggestions(content, gaps, probability)
        plog.step_complete(PipelineStage.SUGGEST, "Suggestions built", count=len(suggestions))

        plog.step_complete(PipelineStage.COMPLETE, "Prediction ready", probability=f"{probability:.1f}%")
        return PerformancePrediction(
            citation_probability=probability,
            similar_content_analyzed=len(unique),
            cited_matches=len(cited),
            gaps=gaps,
            suggestions=suggestions,
            gaps_status=gaps_status,
        )

    async def _search_all(self, records: list[EmbeddingRecord]) -> list[list[SimilarityMatch]]:
        async def _search(record: EmbeddingRecord) -> list[SimilarityMatch]:
            async with self._semaphore:
                return await self._search.search_by_vector(record.vector, self._top_k, _CITED_FILTER)

        return list(await asyncio.gather(*(_search(r) for r in records)))

    async def _identify_gaps(
        self, content: str, cited: list[SimilarityMatch], target_query: str
    ) -> tuple[list[ContentGap], str]:
        if not cited:
            plog.detail("No cited neighbours; gap analysis skipped")
            return [], ResultStatus.OK

        samples = "\n\n".join(
            f"{i}. {m.content[:_GAP_SAMPLE_CHARS]}..."
            for i, m in enumerate(cited[:_GAP_SAMPLES], start=1)
        )
        result = await self._reasoning.generate_list(
            _GAPS_SYSTEM_PROMPT,
            _GAPS_PROMPT.format(
                target_query=target_query,
                content_chars=_GAP_CONTENT_CHARS,
                content=content[:_GAP_CONTENT_CHARS],
                samples=samples,
            ),
            feature="prediction_gaps",
            list_key="gaps",
            max_tokens=600,
        )
        if isinstance(result, ListOk):
            gaps = [ContentGap.from_dict(item) for item in result.items]
            plog.step_complete(PipelineStage.GAPS, "Content gaps identified", count=len(gaps))
            return gaps, ResultStatus.OK

        status = ResultStatus.of(result)
        plog.step_degraded(PipelineStage.GAPS, "Gap analysis unavailable", status=status)
        return [], status


def dedupe_matches(per_chunk: list[list[SimilarityMatch]]) -> list[SimilarityMatch]:
    """Flatten in chunk order, keeping the first occurrence of each fingerprint."""
    seen: set[str] = set()
    unique: list[SimilarityMatch] = []
    for matches in per_chunk:
        for match in matches:
            if match.fingerprint in seen:
                continue
            seen.add(match.fingerprint)
            unique.append(match)
    return unique


def citation_probability(cited: int, total: int) -> float:
    if total == 0:
        return 0.0
    return cited / total * 100


def build_suggestions(
    content: str, gaps: list[ContentGap], probability: float
) -> list[Suggestion]:
    """Rule-based optimization hints. Always runs, independent of generation."""
    suggestions: list[Suggestion] = []

    if len(content) > _LONG_CONTENT_CHARS and "## " not in content:
        suggestions.append(
            Suggestion(
                type="structure",
                priority="high",
                suggestion="Break content into clear sections with headers",
                impact="+15% citation probability",
            )
        )

    if content:
        sentences_per_1000 = (content.count(".") + 1) / (len(content) / 1000)
        if sentences_per_1000 > _MAX_SENTENCES_PER_1000_CHARS:
            suggestions.append(
                Suggestion(
                    type="readability",
                    priority="medium",
                    suggestion="Shorten sentences for better chunk extraction",
                    impact="+10% citation probability",
                )
            )

    for gap in gaps:
        suggestions.append(
            Suggestion(
                type="content",
                priority="high",
                suggestion=gap.how_to_address or "Address content gap",
                impact="+20% citation probability",
            )
        )

    if probability < _LOW_PROBABILITY:
        suggestions.append(
            Suggestion(
                type="overall",
                priority="high",
                suggestion="Major content overhaul recommended - current citation probability is low",
                impact="Potential 2-3x improvement",
            )
        )

    return suggestions
