"""Word-window text chunker."""

from typing import Any

from citelens.domain.entities.chunk import Chunk
from citelens.domain.exceptions import ConfigurationError

# ── Chunking constants ──────────────────────────────────────────────
_DEFAULT_CHUNK_SIZE = 512  # words per window
_DEFAULT_CHUNK_OVERLAP = 128  # words shared with the previous window


class TextChunker:
    """Splits text into overlapping fixed-size word windows.

    Windows start every ``chunk_size - chunk_overlap`` words and hold up to
    ``chunk_size`` words. The trailing partial window is kept, even when the
    previous window already covers it.
    """

    def __init__(
        self,
        *,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = _DEFAULT_CHUNK_OVERLAP,
    ):
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ConfigurationError(
                f"chunk_overlap must satisfy 0 <= overlap < chunk_size "
                f"(got overlap={chunk_overlap}, chunk_size={chunk_size})"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def stride(self) -> int:
        return self._chunk_size - self._chunk_overlap

    def split(self, text: str) -> list[str]:
        """Return the window texts, in order."""
        words = text.split()
        windows: list[str] = []
        for offset in range(0, len(words), self.stride):
            window = " ".join(words[offset : offset + self._chunk_size])
            if window.strip():
                windows.append(window)
        return windows

    def chunk(
        self, text: str, source_metadata: dict[str, Any] | None = None
    ) -> list[Chunk]:
        """Split text into Chunk entities carrying position and source metadata."""
        windows = self.split(text)
        metadata = dict(source_metadata or {})
        return [
            Chunk(
                text=window,
                index=i,
                total_chunks=len(windows),
                source_metadata=metadata,
            )
            for i, window in enumerate(windows)
        ]
