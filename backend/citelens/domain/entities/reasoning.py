"""Tagged results for generative reasoning calls.

Generative responses never cross a service boundary as raw text or untyped
JSON. Callers pattern-match on these variants and substitute their own
placeholder when the call did not produce usable content.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TextOk:
    """Plain-text completion that came back non-empty."""

    text: str


@dataclass(frozen=True)
class ListOk:
    """Structured completion that parsed into a list of objects."""

    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailed:
    """The provider answered, but the answer was not the requested structure."""

    raw: str
    error: str


@dataclass(frozen=True)
class Unavailable:
    """The provider failed, timed out or returned nothing."""

    reason: str


ReasoningResult = TextOk | Unavailable
GeneratedList = ListOk | ParseFailed | Unavailable


class ResultStatus:
    """Status labels persisted next to fields that may hold a placeholder."""

    OK = "ok"
    UNAVAILABLE = "unavailable"
    PARSE_FAILED = "parse_failed"

    @classmethod
    def of(cls, result: TextOk | ListOk | ParseFailed | Unavailable) -> str:
        if isinstance(result, ParseFailed):
            return cls.PARSE_FAILED
        if isinstance(result, Unavailable):
            return cls.UNAVAILABLE
        return cls.OK
