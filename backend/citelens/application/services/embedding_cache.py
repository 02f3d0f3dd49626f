"""Embedding cache — content-addressed resolution of chunks to embedding records.

Resolution order for a chunk:
1. Ephemeral TTL layer (keyed by fingerprint)
2. Durable record store
3. Provider facade, then durable upsert, ephemeral write and index mirror

Step 3 is coalesced per fingerprint: while one caller computes, every other
caller for the same fingerprint awaits that computation's outcome.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from citelens.application.interfaces.embedding_record_repository import EmbeddingRecordRepository
from citelens.application.interfaces.ephemeral_cache import EphemeralCache
from citelens.application.interfaces.vector_index import VectorIndex
from citelens.application.services.embedding_provider_facade import FallbackEmbeddingProvider
from citelens.application.services.fingerprint import content_fingerprint
from citelens.domain.entities.chunk import Chunk, EmbeddingRecord
from citelens.domain.exceptions import IndexUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_TTL_SECONDS = 3600
_RECORD_PREFIX = "embedding:"
_QUERY_PREFIX = "query:"


class _ResolutionAbandoned(Exception):
    """Delivered to waiters when the computing caller was cancelled."""


class EmbeddingCache:
    """Resolves chunks to EmbeddingRecords across the ephemeral and durable layers.

    One instance is shared by the whole process: it owns the in-flight map
    used for coalescing, so it must not be rebuilt per request.
    """

    def __init__(
        self,
        provider: FallbackEmbeddingProvider,
        repository: EmbeddingRecordRepository,
        ephemeral: EphemeralCache,
        vector_index: VectorIndex,
        *,
        ttl_seconds: int = _DEFAULT_TTL_SECONDS,
    ):
        self._provider = provider
        self._repository = repository
        self._ephemeral = ephemeral
        self._vector_index = vector_index
        self._ttl = ttl_seconds
        self._inflight: dict[str, asyncio.Future] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def resolve(self, chunk: Chunk) -> EmbeddingRecord:
        """Return the embedding record for a chunk, computing it at most once.

        Raises:
            EmbeddingProviderError: Both providers failed; nothing was stored.
            ConfigurationError: A provider emitted the wrong dimension.
            IndexUnavailableError: The record was stored durably but the index
                mirror failed; the error carries the stored record.
        """
        fingerprint = content_fingerprint(chunk.text)
        record = await self.lookup(fingerprint)
        if record is not None:
            return record

        return await self._coalesce(
            _RECORD_PREFIX + fingerprint,
            lambda: self._compute_record(fingerprint, chunk),
        )

    async def lookup(self, fingerprint: str) -> EmbeddingRecord | None:
        """Read-only lookup across the ephemeral and durable layers. Never computes."""
        key = _RECORD_PREFIX + fingerprint
        cached = await self._ephemeral.get(key)
        if cached is not None:
            return cached

        record = await self._repository.get_by_fingerprint(fingerprint)
        if record is not None:
            await self._ephemeral.set(key, record, self._ttl)
        return record

    async def resolve_query_vector(self, text: str) -> list[float]:
        """Return a query-mode embedding for ``text``.

        Query vectors are cached in the ephemeral layer only; they are never
        persisted or mirrored to the index.
        """
        key = _QUERY_PREFIX + content_fingerprint(text)
        cached = await self._ephemeral.get(key)
        if cached is not None:
            return cached

        return await self._coalesce(key, lambda: self._compute_query_vector(key, text))

    # ── Internals ───────────────────────────────────────────────────

    async def _coalesce(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory`` once per key; concurrent callers share its outcome."""
        while True:
            future = self._inflight.get(key)
            if future is None:
                break
            try:
                # shield: a cancelled waiter must not cancel the shared future
                return await asyncio.shield(future)
            except _ResolutionAbandoned:
                logger.debug("In-flight resolution for %s abandoned; retrying", key)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            self._fail(future, _ResolutionAbandoned(key))
            raise
        except Exception as exc:
            self._fail(future, exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    @staticmethod
    def _fail(future: asyncio.Future, exc: BaseException) -> None:
        future.set_exception(exc)
        # Mark retrieved so an unobserved failure is not logged at GC time
        future.exception()

    async def _compute_record(self, fingerprint: str, chunk: Chunk) -> EmbeddingRecord:
        # Another resolution may have finished between our lookup and registration.
        record = await self.lookup(fingerprint)
        if record is not None:
            return record

        vector = await self._provider.embed(chunk.text)

        record = await self._repository.upsert(
            EmbeddingRecord(
                fingerprint=fingerprint,
                content=chunk.text,
                vector=vector,
                metadata=self._chunk_metadata(chunk),
            )
        )
        await self._ephemeral.set(_RECORD_PREFIX + fingerprint, record, self._ttl)
        logger.info(
            "Embedded chunk %d/%d fp=%s dims=%d",
            chunk.index + 1,
            chunk.total_chunks,
            fingerprint[:12],
            len(record.vector),
        )

        await self.mirror(record)
        return record

    async def mirror(self, record: EmbeddingRecord) -> None:
        """Upsert a durable record into the vector index and mark it indexed.

        Raises:
            IndexUnavailableError: With ``record`` attached; the durable row is
                left unindexed for the reconciler.
        """
        metadata: dict[str, Any] = {**record.metadata, "content": record.content}
        try:
            await self._vector_index.upsert(record.fingerprint, record.vector, metadata)
        except IndexUnavailableError as exc:
            logger.warning(
                "Index mirror failed for fp=%s — durable record kept for reconciliation: %s",
                record.fingerprint[:12],
                exc.message,
            )
            raise IndexUnavailableError(exc.operation, exc.message, record=record) from exc

        await self._repository.mark_indexed(record.fingerprint)
        record.indexed_at = datetime.now(timezone.utc)

    async def _compute_query_vector(self, key: str, text: str) -> list[float]:
        vector = await self._provider.embed_query(text)
        await self._ephemeral.set(key, vector, self._ttl)
        return vector

    @staticmethod
    def _chunk_metadata(chunk: Chunk) -> dict[str, Any]:
        return {
            **chunk.source_metadata,
            "chunk_index": chunk.index,
            "total_chunks": chunk.total_chunks,
        }
