"""Similarity search — query embedding, index lookup and durable enrichment."""

import asyncio
import logging
from typing import Any

from citelens.application.interfaces.vector_index import VectorIndex
from citelens.application.services.embedding_cache import EmbeddingCache
from citelens.domain.entities.similarity import SimilarityMatch, VectorIndexMatch

logger = logging.getLogger(__name__)

_DEFAULT_TOP_K = 10


class SimilaritySearchService:
    """Answers "what is most similar to X" against the vector index.

    Index hits are joined back to their durable EmbeddingRecords by
    fingerprint. When the durable record is missing or its lookup fails,
    the hit keeps whatever the index itself carried.
    """

    def __init__(self, embedding_cache: EmbeddingCache, vector_index: VectorIndex):
        self._cache = embedding_cache
        self._index = vector_index

    async def search_similar(
        self,
        text: str,
        top_k: int = _DEFAULT_TOP_K,
        filter: dict[str, Any] | None = None,
    ) -> list[SimilarityMatch]:
        """Embed ``text`` as a query and return up to ``top_k`` enriched matches."""
        query_vector = await self._cache.resolve_query_vector(text)
        return await self.search_by_vector(query_vector, top_k, filter)

    async def search_by_vector(
        self,
        vector: list[float],
        top_k: int = _DEFAULT_TOP_K,
        filter: dict[str, Any] | None = None,
    ) -> list[SimilarityMatch]:
        """Query the index with an existing vector and enrich the hits."""
        if top_k <= 0:
            return []

        hits = await self._index.query(vector, top_k, filter)
        hits = sorted(hits, key=lambda h: h.score, reverse=True)[:top_k]

        matches = await asyncio.gather(*(self._enrich(hit) for hit in hits))
        logger.debug(
            "Similarity search: %d hits (top_k=%d, filter=%s)", len(matches), top_k, filter
        )
        return list(matches)

    async def _enrich(self, hit: VectorIndexMatch) -> SimilarityMatch:
        index_metadata = dict(hit.metadata or {})
        index_content = index_metadata.pop("content", "") or ""

        try:
            record = await self._cache.lookup(hit.id)
        except Exception as exc:
            logger.warning("Enrichment failed for fp=%s: %s", hit.id[:12], exc)
            record = None

        if record is None:
            return SimilarityMatch(
                fingerprint=hit.id,
                score=hit.score,
                content=index_content,
                metadata=index_metadata,
            )

        return SimilarityMatch(
            fingerprint=hit.id,
            score=hit.score,
            content=record.content or index_content,
            metadata={**record.metadata, **index_metadata},
        )
