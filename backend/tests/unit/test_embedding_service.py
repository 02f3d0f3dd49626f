"""Unit tests for EmbeddingService — chunk ordering and bounded concurrency."""

import asyncio

import pytest

from citelens.application.services.embedding_service import EmbeddingService
from citelens.application.services.text_chunker import TextChunker
from citelens.domain.entities import EmbeddingRecord
from citelens.domain.exceptions import EmbeddingProviderError


class RecordingCache:
    """Resolves chunks after a short sleep while tracking peak concurrency."""

    def __init__(self, fail_index: int | None = None):
        self.fail_index = fail_index
        self.active = 0
        self.peak = 0
        self.resolved: list[int] = []

    async def resolve(self, chunk):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            # Later chunks finish first so ordering has to be restored
            await asyncio.sleep(0.001 * (chunk.total_chunks - chunk.index))
            if chunk.index == self.fail_index:
                raise EmbeddingProviderError("openrouter", 503, "down")
            self.resolved.append(chunk.index)
            return EmbeddingRecord(
                fingerprint=f"fp{chunk.index}",
                content=chunk.text,
                vector=[float(chunk.index)],
                metadata=dict(chunk.source_metadata),
            )
        finally:
            self.active -= 1


def _words(n: int) -> str:
    return " ".join(f"w{i}" for i in range(n))


@pytest.mark.asyncio
async def test_records_come_back_in_chunk_order():
    cache = RecordingCache()
    service = EmbeddingService(cache, TextChunker(chunk_size=10, chunk_overlap=2), concurrency=8)

    records = await service.embed_text(_words(50), {"source_url": "https://a"})

    assert [r.fingerprint for r in records] == [f"fp{i}" for i in range(len(records))]
    assert len(records) == 7
    assert records[0].metadata["source_url"] == "https://a"


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    cache = RecordingCache()
    service = EmbeddingService(cache, TextChunker(chunk_size=10, chunk_overlap=2), concurrency=2)

    await service.embed_text(_words(80))

    assert cache.peak <= 2


@pytest.mark.asyncio
async def test_empty_text_resolves_nothing():
    cache = RecordingCache()
    service = EmbeddingService(cache, TextChunker(chunk_size=10, chunk_overlap=2))

    assert await service.embed_text("   ") == []
    assert cache.resolved == []


@pytest.mark.asyncio
async def test_first_failure_propagates():
    service = EmbeddingService(RecordingCache(fail_index=1), TextChunker(chunk_size=10, chunk_overlap=2))

    with pytest.raises(EmbeddingProviderError):
        await service.embed_text(_words(30))


@pytest.mark.asyncio
async def test_concurrency_bound_is_shared_across_calls():
    cache = RecordingCache()
    service = EmbeddingService(cache, TextChunker(chunk_size=10, chunk_overlap=2), concurrency=2)

    await asyncio.gather(*(service.embed_text(_words(80)) for _ in range(3)))

    assert cache.peak <= 2
    assert len(cache.resolved) == 30
