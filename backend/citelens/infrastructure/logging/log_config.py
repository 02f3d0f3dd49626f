"""Logging setup for the CiteLens API process.

Five categories can be tuned independently from Settings:

    sql        SQLAlchemy engine/pool and asyncpg
    http       outbound httpx traffic to providers and the vector index
    uvicorn    access and server logs
    pipeline   analysis / prediction traces (PipelineLogger) and services
    providers  OpenRouter, Cohere and vector-index adapters

setup_logging() runs once from the FastAPI lifespan.
"""

import logging
import sys

from citelens.config import Settings, get_settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Settings field → logger names it controls
_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "asyncpg"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    # PipelineLogger registers under the component name, not the module path
    "log_level_pipeline": (
        "AnalysisService",
        "PredictionService",
        "citelens.application.services",
    ),
    "log_level_providers": (
        "citelens.infrastructure.openrouter",
        "citelens.infrastructure.cohere",
        "citelens.infrastructure.vector_index",
    ),
}


def setup_logging(settings: Settings | None = None) -> None:
    """Apply the root level, a stderr handler if none exists, and category levels."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    applied: dict[str, str] = {}
    for field_name, logger_names in _CATEGORY_MAP.items():
        raw_level: str = getattr(settings, field_name, "INFO")
        level = _parse_level(raw_level)
        for name in logger_names:
            logging.getLogger(name).setLevel(level)
        applied[field_name.removeprefix("log_level_")] = logging.getLevelName(level)

    logging.getLogger(__name__).debug(
        "Log levels: root=%s %s",
        settings.log_level,
        " ".join(f"{category}={level}" for category, level in applied.items()),
    )


def _parse_level(raw: str) -> int:
    """Level name → logging constant. Unknown names fall back to INFO."""
    numeric = getattr(logging, raw.strip().upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO
