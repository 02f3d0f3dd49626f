"""Analysis service — explains why a citation was chosen and how to earn more.

Staged flow per citation:
  1. Fetch the citation
  2. Retrieve similar chunks from the vector index
  3. Correlate their source URLs with ranking keywords
  4. Hypothesize why the citation was selected (generative)
  5. Recommend content changes (generative, structured)
  6. Persist — one Analysis row per citation, overwritten on re-run

Generative stages never abort the run: failures are replaced by placeholders
and flagged through the Analysis status fields.
"""

import logging

from citelens.application.interfaces.citation_repository import (
    AnalysisRepository,
    CitationRepository,
    KeywordRepository,
)
from citelens.application.services.reasoning_service import ReasoningService
from citelens.application.services.similarity_search_service import SimilaritySearchService
from citelens.domain.entities import (
    Analysis,
    KeywordMatch,
    ListOk,
    Recommendation,
    ResultStatus,
    SimilarityMatch,
    TextOk,
)
from citelens.domain.exceptions import EntityNotFoundError
from citelens.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("AnalysisService")

HYPOTHESIS_UNAVAILABLE = "Unable to generate hypothesis"

DEFAULT_RECOMMENDATIONS: tuple[Recommendation, ...] = (
    Recommendation(
        action="Review AI recommendations",
        reason="Manual review needed",
        impact="Unknown",
        priority="medium",
    ),
)

_DEFAULT_TOP_K = 20
_PROMPT_CHUNKS = 5
_PROMPT_KEYWORDS = 10
_CHUNK_PREVIEW_CHARS = 200

# ── Prompts ─────────────────────────────────────────────────────────

_HYPOTHESIS_SYSTEM_PROMPT = "You are an AI search optimization expert."

_HYPOTHESIS_PROMPT = """\
Analyze why this content was selected for the AI search response.

Query: {query}
Citation: {citation}

Similar content chunks found:
{chunks}

Keywords these similar chunks rank for:
{keywords}

Based on this data, provide a hypothesis for why this specific content was
chosen by the AI. Consider:
1. Topical relevance
2. Content quality signals
3. Semantic similarity patterns
4. Authority indicators

Be specific and actionable.
"""

_RECOMMENDATIONS_SYSTEM_PROMPT = (
    "You are an AI search optimization expert. Always respond with valid JSON."
)

_RECOMMENDATIONS_PROMPT = """\
Based on the following analysis, provide specific recommendations for
optimizing content to increase AI citation probability.

Query: {query}
Current Citation: {citation}

Reasoning Hypothesis: {hypothesis}

Top Keywords in Similar Content:
{keywords}

Provide 5 specific, actionable recommendations.

## Response Format (strict JSON array, no markdown)

[
  {{"action": "what to do", "reason": "why it will help",
    "impact": "expected increase in citation probability, e.g. +15%",
    "priority": "high"}}
]

Valid priorities: "high", "medium", "low"
"""


class AnalysisService:
    """Application service that runs the citation analysis pipeline."""

    def __init__(
        self,
        citation_repo: CitationRepository,
        keyword_repo: KeywordRepository,
        analysis_repo: AnalysisRepository,
        similarity_search: SimilaritySearchService,
        reasoning: ReasoningService,
        *,
        top_k: int = _DEFAULT_TOP_K,
    ):
        self._citation_repo = citation_repo
        self._keyword_repo = keyword_repo
        self._analysis_repo = analysis_repo
        self._search = similarity_search
        self._reasoning = reasoning
        self._top_k = top_k

    async def get_analysis(self, citation_id: int) -> Analysis | None:
        """Return the stored analysis for a citation, if one was ever run."""
        return await self._analysis_repo.get_by_citation(citation_id)

    async def analyze_citation(self, citation_id: int) -> Analysis:
        """Run the full pipeline for one citation and persist the result.

        Raises:
            EntityNotFoundError: The citation does not exist.
            ConfigurationError / IndexUnavailableError: Retrieval could not run.
        """
        plog.separator(f"citation {citation_id}")

        # Step 1: Fetch
        with plog.timed_step(PipelineStage.FETCH, f"Loading citation {citation_id}"):
            citation = await self._citation_repo.get_by_id(citation_id)
        if citation is None:
            plog.step_error(PipelineStage.FETCH, f"Citation {citation_id} not found")
            raise EntityNotFoundError("Citation", citation_id)

        # Step 2: Retrieve
        with plog.timed_step(PipelineStage.RETRIEVE, "Searching similar chunks", top_k=self._top_k):
            similar = await self._search.search_similar(citation.text, self._top_k)
        plog.stats(similar_chunks=len(similar))

        # Step 3: Correlate
        with plog.timed_step(PipelineStage.CORRELATE, "Resolving keywords for source URLs"):
            keywords = await self._correlate_keywords(similar)
        plog.stats(keyword_matches=len(keywords))

        # Step 4: Hypothesize
        hypothesis_result = await self._reasoning.generate_text(
            _HYPOTHESIS_SYSTEM_PROMPT,
            _HYPOTHESIS_PROMPT.format(
                query=citation.query,
                citation=citation.text,
                chunks=_format_chunks(similar),
                keywords=_format_keywords(keywords, with_difficulty=True),
            ),
            feature="analysis_hypothesis",
            max_tokens=500,
        )
        if isinstance(hypothesis_result, TextOk):
            hypothesis = hypothesis_result.text
            plog.step_complete(PipelineStage.HYPOTHESIZE, "Hypothesis generated", chars=len(hypothesis))
        else:
            hypothesis = HYPOTHESIS_UNAVAILABLE
            plog.step_degraded(
                PipelineStage.HYPOTHESIZE, "Hypothesis unavailable", reason=hypothesis_result.reason
            )

        # Step 5: Recommend
        recommendations_result = await self._reasoning.generate_list(
            _RECOMMENDATIONS_SYSTEM_PROMPT,
            _RECOMMENDATIONS_PROMPT.format(
                query=citation.query,
                citation=citation.text,
                hypothesis=hypothesis,
                keywords=_format_keywords(keywords, with_difficulty=False),
            ),
            feature="analysis_recommendations",
            list_key="recommendations",
            max_tokens=800,
        )
        if isinstance(recommendations_result, ListOk):
            recommendations = [Recommendation.from_dict(i) for i in recommendations_result.items]
            plog.step_complete(
                PipelineStage.RECOMMEND, "Recommendations generated", count=len(recommendations)
            )
        else:
            recommendations = list(DEFAULT_RECOMMENDATIONS)
            plog.step_degraded(
                PipelineStage.RECOMMEND,
                "Recommendations fell back to default",
                status=ResultStatus.of(recommendations_result),
            )

        # Step 6: Persist
        analysis = Analysis(
            citation_id=citation.id,
            similar_chunks=similar,
            keyword_matches=keywords,
            reasoning_hypothesis=hypothesis,
            recommendations=recommendations,
            hypothesis_status=ResultStatus.of(hypothesis_result),
            recommendations_status=ResultStatus.of(recommendations_result),
        )
        with plog.timed_step(PipelineStage.PERSIST, f"Saving analysis for citation {citation.id}"):
            saved = await self._analysis_repo.upsert(analysis)

        plog.step_complete(PipelineStage.COMPLETE, f"Citation {citation.id} analyzed", partial=saved.is_partial)
        return saved

    async def _correlate_keywords(self, similar: list[SimilarityMatch]) -> list[KeywordMatch]:
        urls = distinct_source_urls(similar)
        if not urls:
            return []
        return await self._keyword_repo.get_for_urls(urls)


def distinct_source_urls(matches: list[SimilarityMatch]) -> list[str]:
    """Distinct ``source_url`` values across matches, in first-seen order."""
    seen: dict[str, None] = {}
    for match in matches:
        url = match.metadata.get("source_url")
        if url:
            seen.setdefault(str(url), None)
    return list(seen)


def _format_chunks(matches: list[SimilarityMatch]) -> str:
    if not matches:
        return "(none)"
    return "\n".join(
        f"{i}. {m.content[:_CHUNK_PREVIEW_CHARS]}... (similarity: {m.score:.3f})"
        for i, m in enumerate(matches[:_PROMPT_CHUNKS], start=1)
    )


def _format_keywords(keywords: list[KeywordMatch], *, with_difficulty: bool) -> str:
    if not keywords:
        return "(none)"
    lines = []
    for km in keywords[:_PROMPT_KEYWORDS]:
        if with_difficulty:
            lines.append(f"- {km.keyword} (volume: {km.search_volume}, difficulty: {km.difficulty})")
        else:
            lines.append(f"- {km.keyword} (volume: {km.search_volume})")
    return "\n".join(lines)
