"""Domain entities supplied by the citation tracking and keyword collaborators.

Both are read-only inputs to the analysis pipeline.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Citation:
    """A snippet of a page that an AI search surface cited for a query."""

    id: int
    query: str
    text: str
    source_url: str | None = None
    position: int | None = None
    mode_type: str | None = None  # e.g. "ai_overview", "ai_mode"
    domain_id: int | None = None
    created_at: datetime | None = None


@dataclass
class KeywordMatch:
    """A keyword that a URL ranks for, with its SERP metrics."""

    keyword: str
    url: str
    search_volume: int | None = None
    difficulty: float | None = None
    cpc: float | None = None
    position: int | None = None
