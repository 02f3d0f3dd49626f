"""Embedding service — chunks whole texts and resolves every chunk with bounded concurrency.

This is an application service that coordinates:
1. Splitting text into overlapping word windows
2. Resolving each window through the EmbeddingCache (dedup + provider fallback)
3. Capping parallel resolutions so third-party rate limits are respected
"""

import asyncio
import logging
import time
from typing import Any

from citelens.application.services.embedding_cache import EmbeddingCache
from citelens.application.services.text_chunker import TextChunker
from citelens.domain.entities.chunk import Chunk, EmbeddingRecord

logger = logging.getLogger(__name__)

_DEFAULT_CONCURRENCY = 4


class EmbeddingService:
    """Application service for turning text into stored embedding records."""

    def __init__(
        self,
        embedding_cache: EmbeddingCache,
        chunker: TextChunker,
        *,
        concurrency: int = _DEFAULT_CONCURRENCY,
    ):
        self._cache = embedding_cache
        self._chunker = chunker
        self._concurrency = max(1, concurrency)
        # One bound for every concurrent caller of this instance
        self._semaphore = asyncio.Semaphore(self._concurrency)

    @property
    def chunker(self) -> TextChunker:
        return self._chunker

    async def embed_text(
        self, text: str, metadata: dict[str, Any] | None = None
    ) -> list[EmbeddingRecord]:
        """Chunk ``text`` and resolve every chunk. Records come back in chunk order."""
        chunks = self._chunker.chunk(text, metadata)
        if not chunks:
            logger.info("No embeddable text (%d chars)", len(text))
            return []

        start = time.monotonic()
        records = await self.resolve_chunks(chunks)

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Embedded text: %d chunks (%d unique) in %dms",
            len(records),
            len({r.fingerprint for r in records}),
            duration_ms,
        )
        return records

    async def resolve_chunks(self, chunks: list[Chunk]) -> list[EmbeddingRecord]:
        """Resolve chunks in parallel, at most ``concurrency`` at a time.

        The bound is shared by every concurrent call on this instance. The
        first failure cancels the remaining resolutions and propagates.
        """

        async def _resolve(chunk: Chunk) -> EmbeddingRecord:
            async with self._semaphore:
                return await self._cache.resolve(chunk)

        tasks = [asyncio.ensure_future(_resolve(chunk)) for chunk in chunks]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
