"""Index reconciler — asyncio daemon that re-mirrors unindexed embedding records."""

import asyncio
import logging

from citelens.application.interfaces.embedding_record_repository import EmbeddingRecordRepository
from citelens.application.services.embedding_cache import EmbeddingCache
from citelens.domain.exceptions import IndexUnavailableError

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL_SECONDS = 300
_DEFAULT_BATCH_SIZE = 100


class IndexReconciler:
    """Closes the gap between the durable store and the vector index.

    Records whose mirror write failed keep ``indexed_at = NULL``. Each sweep
    re-upserts a batch of them, oldest first, and stops at the first
    IndexUnavailableError since the backend is then presumed down.

    Runs as an asyncio.Task inside FastAPI's lifespan.
    """

    def __init__(
        self,
        embedding_cache: EmbeddingCache,
        repository: EmbeddingRecordRepository,
        *,
        interval_seconds: float = _DEFAULT_INTERVAL_SECONDS,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> None:
        self._cache = embedding_cache
        self._repository = repository
        self._interval = interval_seconds
        self._batch_size = batch_size
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the periodic sweep loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("IndexReconciler started (every %ss)", self._interval)

    async def stop(self) -> None:
        """Gracefully stop the sweep loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("IndexReconciler stopped")

    async def sweep(self, batch_size: int | None = None) -> int:
        """Mirror one batch of unindexed records. Returns how many succeeded."""
        limit = batch_size or self._batch_size
        pending = await self._repository.list_unindexed(limit)
        if not pending:
            return 0

        mirrored = 0
        for record in pending:
            try:
                await self._cache.mirror(record)
            except IndexUnavailableError as e:
                logger.warning(
                    "Reconciliation halted after %d/%d records: %s",
                    mirrored,
                    len(pending),
                    e.message,
                )
                break
            mirrored += 1

        logger.info("Reconciled %d/%d unindexed records", mirrored, len(pending))
        return mirrored

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.sweep()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("IndexReconciler sweep error")

            await asyncio.sleep(self._interval)
