"""Unit tests for the EmbeddingCache — layered lookup, coalescing and failure delivery."""

import asyncio
from datetime import datetime, timezone

import pytest

from citelens.application.services.embedding_cache import EmbeddingCache
from citelens.application.services.embedding_provider_facade import FallbackEmbeddingProvider
from citelens.application.services.fingerprint import content_fingerprint
from citelens.domain.entities import Chunk, EmbeddingRecord
from citelens.domain.exceptions import EmbeddingProviderError, IndexUnavailableError
from citelens.infrastructure.cache.memory_ttl_cache import MemoryTTLCache


# ── Fakes ────────────────────────────────────────────────────────────


class FakeFacade:
    """Counts embed calls; can delay, fail or block the first call."""

    def __init__(
        self,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
        block_first: bool = False,
    ):
        self.delay = delay
        self.error = error
        self.block_first = block_first
        self.embed_calls = 0
        self.query_calls = 0

    async def embed(self, text: str) -> list[float]:
        self.embed_calls += 1
        if self.block_first and self.embed_calls == 1:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return [float(len(text)), 1.0, 0.0]

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls += 1
        return [0.0, 0.0, 1.0]


class FakeRecordRepository:
    def __init__(self):
        self.records: dict[str, EmbeddingRecord] = {}
        self.upserts = 0

    async def get_by_fingerprint(self, fingerprint):
        return self.records.get(fingerprint)

    async def upsert(self, record):
        self.upserts += 1
        existing = self.records.get(record.fingerprint)
        if existing is not None:
            existing.metadata = record.metadata
            return existing
        record.id = len(self.records) + 1
        self.records[record.fingerprint] = record
        return record

    async def mark_indexed(self, fingerprint):
        self.records[fingerprint].indexed_at = datetime.now(timezone.utc)

    async def list_unindexed(self, limit=100):
        return [r for r in self.records.values() if r.indexed_at is None][:limit]


class FakeVectorIndex:
    backend_name = "fake"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.entries: dict[str, tuple[list[float], dict]] = {}

    async def ensure_ready(self):
        pass

    async def upsert(self, id, vector, metadata):
        if self.fail:
            raise IndexUnavailableError("upsert", "index is down")
        self.entries[id] = (vector, metadata)

    async def query(self, vector, top_k=10, filter=None):
        return []

    async def delete_by_ids(self, ids):
        for i in ids:
            self.entries.pop(i, None)


def _build(facade=None, index=None):
    facade = facade or FakeFacade()
    repo = FakeRecordRepository()
    ephemeral = MemoryTTLCache()
    index = index or FakeVectorIndex()
    cache = EmbeddingCache(facade, repo, ephemeral, index, ttl_seconds=60)
    return cache, facade, repo, ephemeral, index


def _chunk(text: str = "alpha beta gamma", **metadata) -> Chunk:
    return Chunk(text=text, index=0, total_chunks=1, source_metadata=metadata)


# ── Tests ────────────────────────────────────────────────────────────


class TestResolve:
    @pytest.mark.asyncio
    async def test_miss_embeds_stores_and_mirrors(self):
        cache, facade, repo, _, index = _build()

        record = await cache.resolve(_chunk(source_url="https://example.com"))

        fp = content_fingerprint("alpha beta gamma")
        assert record.fingerprint == fp
        assert facade.embed_calls == 1
        assert repo.records[fp] is record
        assert record.is_indexed
        vector, metadata = index.entries[fp]
        assert vector == record.vector
        assert metadata["content"] == "alpha beta gamma"
        assert metadata["source_url"] == "https://example.com"
        assert metadata["chunk_index"] == 0
        assert metadata["total_chunks"] == 1

    @pytest.mark.asyncio
    async def test_second_resolve_is_a_cache_hit(self):
        cache, facade, _, _, _ = _build()

        first = await cache.resolve(_chunk())
        second = await cache.resolve(_chunk())

        assert facade.embed_calls == 1
        assert second.vector == first.vector

    @pytest.mark.asyncio
    async def test_durable_hit_repopulates_ephemeral_layer(self):
        cache, facade, _, ephemeral, _ = _build()

        record = await cache.resolve(_chunk())
        ephemeral.clear()

        again = await cache.resolve(_chunk())

        assert facade.embed_calls == 1
        assert again is record
        assert await ephemeral.get("embedding:" + record.fingerprint) is record

    @pytest.mark.asyncio
    async def test_distinct_texts_get_distinct_records(self):
        cache, facade, repo, _, _ = _build()

        a = await cache.resolve(_chunk("first text"))
        b = await cache.resolve(_chunk("second text"))

        assert a.fingerprint != b.fingerprint
        assert facade.embed_calls == 2
        assert len(repo.records) == 2


class TestCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_resolves_call_provider_once(self):
        cache, facade, repo, _, _ = _build(FakeFacade(delay=0.01))

        results = await asyncio.gather(*(cache.resolve(_chunk()) for _ in range(10)))

        assert facade.embed_calls == 1
        assert repo.upserts == 1
        assert len({id(r) for r in results}) == 1
        assert cache.inflight_count == 0

    @pytest.mark.asyncio
    async def test_provider_failure_reaches_every_waiter(self):
        error = EmbeddingProviderError("cohere", 500, "both providers down")
        cache, facade, repo, _, index = _build(FakeFacade(delay=0.01, error=error))

        results = await asyncio.gather(
            *(cache.resolve(_chunk()) for _ in range(5)), return_exceptions=True
        )

        assert facade.embed_calls == 1
        assert all(r is error for r in results)
        assert repo.records == {}
        assert index.entries == {}
        assert cache.inflight_count == 0

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        cache, facade, _, _, _ = _build(FakeFacade(error=EmbeddingProviderError("x", 500, "down")))

        with pytest.raises(EmbeddingProviderError):
            await cache.resolve(_chunk())

        facade.error = None
        record = await cache.resolve(_chunk())

        assert facade.embed_calls == 2
        assert record.vector

    @pytest.mark.asyncio
    async def test_cancelled_winner_hands_over_to_waiter(self):
        cache, facade, _, _, _ = _build(FakeFacade(block_first=True))

        winner = asyncio.create_task(cache.resolve(_chunk()))
        await asyncio.sleep(0)
        waiter = asyncio.create_task(cache.resolve(_chunk()))
        await asyncio.sleep(0)

        winner.cancel()
        record = await asyncio.wait_for(waiter, timeout=1)

        assert winner.cancelled()
        assert facade.embed_calls == 2
        assert record.fingerprint == content_fingerprint("alpha beta gamma")
        assert cache.inflight_count == 0


class TestIndexFailure:
    @pytest.mark.asyncio
    async def test_index_failure_keeps_unindexed_durable_record(self):
        cache, facade, repo, _, _ = _build(index=FakeVectorIndex(fail=True))

        with pytest.raises(IndexUnavailableError) as exc_info:
            await cache.resolve(_chunk())

        fp = content_fingerprint("alpha beta gamma")
        stored = repo.records[fp]
        assert exc_info.value.record is stored
        assert stored.indexed_at is None
        assert await repo.list_unindexed() == [stored]

    @pytest.mark.asyncio
    async def test_index_failure_reaches_waiters(self):
        cache, facade, _, _, _ = _build(
            FakeFacade(delay=0.01), index=FakeVectorIndex(fail=True)
        )

        results = await asyncio.gather(
            *(cache.resolve(_chunk()) for _ in range(3)), return_exceptions=True
        )

        assert facade.embed_calls == 1
        assert all(isinstance(r, IndexUnavailableError) for r in results)

    @pytest.mark.asyncio
    async def test_mirror_marks_record_indexed_once_index_recovers(self):
        index = FakeVectorIndex(fail=True)
        cache, _, repo, _, _ = _build(index=index)
        with pytest.raises(IndexUnavailableError):
            await cache.resolve(_chunk())
        record = next(iter(repo.records.values()))

        index.fail = False
        await cache.mirror(record)

        assert record.is_indexed
        assert record.fingerprint in index.entries


class TestLookupAndQueryVector:
    @pytest.mark.asyncio
    async def test_lookup_never_computes(self):
        cache, facade, _, _, _ = _build()

        assert await cache.lookup(content_fingerprint("unknown")) is None
        assert facade.embed_calls == 0

    @pytest.mark.asyncio
    async def test_query_vector_is_cached_but_never_stored(self):
        cache, facade, repo, _, index = _build()

        first = await cache.resolve_query_vector("best crm for startups")
        second = await cache.resolve_query_vector("best crm for startups")

        assert first == second == [0.0, 0.0, 1.0]
        assert facade.query_calls == 1
        assert facade.embed_calls == 0
        assert repo.records == {}
        assert index.entries == {}


class _StubProvider:
    def __init__(self, name: str, vector: list[float], *, hang: bool = False):
        self.provider_name = name
        self.dimensions = len(vector)
        self._vector = vector
        self._hang = hang

    async def generate_embeddings(self, texts):
        if self._hang:
            await asyncio.sleep(10)
        return [list(self._vector) for _ in texts]

    async def generate_query_embedding(self, query):
        return list(self._vector)


class TestProviderFallback:
    @pytest.mark.asyncio
    async def test_primary_timeout_records_secondary_vector(self):
        facade = FallbackEmbeddingProvider(
            _StubProvider("openrouter", [1.0, 0.0, 0.0], hang=True),
            _StubProvider("cohere", [0.0, 1.0, 0.0]),
            dimensions=3,
            timeout_seconds=0.05,
        )
        cache, _, repo, _, index = _build(facade=facade)

        record = await cache.resolve(_chunk("fallback text"))

        fp = content_fingerprint("fallback text")
        assert record.vector == [0.0, 1.0, 0.0]
        assert repo.records[fp].vector == [0.0, 1.0, 0.0]
        assert index.entries[fp][0] == [0.0, 1.0, 0.0]
