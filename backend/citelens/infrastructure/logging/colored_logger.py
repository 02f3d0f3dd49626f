"""Colored pipeline logger — ANSI-colored console logging for the reasoning pipelines.

Provides a PipelineLogger with color-coded output per pipeline stage,
making it easy to visually trace citation analysis and performance
prediction runs in the terminal.

Color scheme:
    🟢 Green   — Fetch / Persist
    🟡 Yellow  — Chunking / Embedding
    🔵 Blue    — Similarity retrieval
    🟠 Cyan    — Keyword correlation
    🟣 Magenta — Generative reasoning
    🔴 Red     — Errors
    ⚪ Gray    — Timing / Stats
"""

import logging
import time
from contextlib import contextmanager
from typing import Any


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


# ── Pipeline Stage Definitions ───────────────────────────────────────

class PipelineStage:
    """Predefined pipeline stages with colors and icons."""

    FETCH = ("FETCH", _Colors.GREEN, "📥")
    CHUNK = ("CHUNK", _Colors.YELLOW, "✂️")
    EMBED = ("EMBED", _Colors.YELLOW, "🧮")
    RETRIEVE = ("RETRIEVE", _Colors.BLUE, "🔎")
    CORRELATE = ("CORRELATE", _Colors.CYAN, "🔗")
    HYPOTHESIZE = ("HYPOTHESIZE", _Colors.MAGENTA, "🤖")
    RECOMMEND = ("RECOMMEND", _Colors.MAGENTA, "💡")
    GAPS = ("GAPS", _Colors.MAGENTA, "🕳️")
    SUGGEST = ("SUGGEST", _Colors.CYAN, "📝")
    PERSIST = ("PERSIST", _Colors.GREEN, "💾")
    PIPELINE = ("PIPELINE", _Colors.WHITE, "⚙️")
    ERROR = ("ERROR", _Colors.RED, "❌")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")


# ── PipelineLogger ───────────────────────────────────────────────────

class PipelineLogger:
    """Color-coded logger for the analysis and prediction pipelines.

    Usage:
        log = PipelineLogger("AnalysisService")
        log.step_start(PipelineStage.FETCH, "Loading citation 42")
        log.detail("query='best crm for startups'")
        log.step_complete(PipelineStage.FETCH, "Citation loaded")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)
        self._component = component_name

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the start of a pipeline step with its stage color."""
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({self._format_kwargs(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log the successful completion of a pipeline step."""
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({self._format_kwargs(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_degraded(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        """Log a step that fell back to a placeholder instead of failing."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.YELLOW}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.YELLOW}⚠ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({self._format_kwargs(kwargs)}){_Colors.RESET}"
        self._logger.warning(formatted)

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a pipeline step error in red."""
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        """Log additional detail (gray/dimmed)."""
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({self._format_kwargs(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def separator(self, title: str = "") -> None:
        """Log a visual separator line."""
        if title:
            self._logger.info(
                f"{_Colors.GRAY}{'─' * 10} {title} {'─' * max(0, 50 - len(title))}{_Colors.RESET}"
            )
        else:
            self._logger.info(f"{_Colors.GRAY}{'─' * 60}{_Colors.RESET}")

    def stats(self, **kwargs: Any) -> None:
        """Log statistics / timing information."""
        parts = [f"{_Colors.GRAY}{k}: {v}" for k, v in kwargs.items()]
        formatted = f"   {_Colors.GRAY}📈 {' | '.join(parts)}{_Colors.RESET}"
        self._logger.info(formatted)

    @contextmanager
    def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Context manager that logs start/end with elapsed time.

        Usage:
            with log.timed_step(PipelineStage.RETRIEVE, "Searching similar chunks"):
                matches = await search.search_similar(...)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s", **kwargs)

    @staticmethod
    def _format_kwargs(kwargs: dict[str, Any]) -> str:
        return " | ".join(f"{k}={v}" for k, v in kwargs.items())
