"""In-process TTL cache — the ephemeral layer in front of the durable store.

Entries expire ``ttl`` seconds after they were written. When the cache is
full the least recently used entry is evicted. All access happens on the
event loop thread, so no locking is needed.
"""

from collections import OrderedDict
from time import monotonic
from typing import Any

from citelens.application.interfaces.ephemeral_cache import EphemeralCache

_DEFAULT_TTL_SECONDS = 3600
_DEFAULT_MAX_ENTRIES = 10_000


class MemoryTTLCache(EphemeralCache):
    """Bounded, TTL-expiring key/value cache held in process memory."""

    def __init__(
        self,
        default_ttl: int = _DEFAULT_TTL_SECONDS,
        max_entries: int = _DEFAULT_MAX_ENTRIES,
        clock=monotonic,
    ):
        self._default_ttl = default_ttl
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
