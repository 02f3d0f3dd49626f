"""Reasoning service — generative completions wrapped in tagged results.

Every call returns a value instead of raising: TextOk / ListOk on success,
ParseFailed when the model answered with something that is not the requested
structure, Unavailable when the provider failed or timed out. Pipelines
decide which placeholder to use for each failure variant.
"""

import asyncio
import json
import logging
import time
from typing import Any

from citelens.application.interfaces.chat_provider import ChatProvider
from citelens.domain.entities import ChatMessage
from citelens.domain.entities.reasoning import (
    GeneratedList,
    ListOk,
    ParseFailed,
    ReasoningResult,
    TextOk,
    Unavailable,
)
from citelens.domain.exceptions import GenerativeParseError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 60.0


class ReasoningService:
    """Thin gateway between the pipelines and the chat provider."""

    def __init__(
        self,
        chat_provider: ChatProvider,
        *,
        model: str = "",
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ):
        self._chat_provider = chat_provider
        self._model = model
        self._timeout = timeout_seconds

    async def generate_text(
        self,
        system_prompt: str,
        prompt: str,
        *,
        feature: str,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> ReasoningResult:
        """Plain-text completion."""
        content = await self._complete(
            system_prompt, prompt, feature=feature, temperature=temperature, max_tokens=max_tokens
        )
        if isinstance(content, Unavailable):
            return content
        if not content.strip():
            return Unavailable(reason="empty completion")
        return TextOk(text=content.strip())

    async def generate_list(
        self,
        system_prompt: str,
        prompt: str,
        *,
        feature: str,
        list_key: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> GeneratedList:
        """Completion expected to be a JSON array of objects.

        A top-level object is accepted when it wraps the array under
        ``list_key`` (or holds exactly one list value).
        """
        content = await self._complete(
            system_prompt, prompt, feature=feature, temperature=temperature, max_tokens=max_tokens
        )
        if isinstance(content, Unavailable):
            return content

        try:
            items = parse_json_list(content, list_key=list_key)
        except GenerativeParseError as e:
            logger.warning("Reasoning [%s] returned unparseable output: %s", feature, e.message)
            return ParseFailed(raw=e.raw, error=e.message)
        return ListOk(items=items)

    async def _complete(
        self,
        system_prompt: str,
        prompt: str,
        *,
        feature: str,
        temperature: float,
        max_tokens: int,
    ) -> str | Unavailable:
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=prompt),
        ]
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                self._chat_provider.complete(
                    messages=messages,
                    model=self._model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self._timeout,
            )
        except TimeoutError:
            logger.error("Reasoning [%s] timed out after %.0fs", feature, self._timeout)
            return Unavailable(reason="timeout")
        except Exception as e:
            logger.error("Reasoning [%s] failed: %s", feature, e)
            return Unavailable(reason=str(e) or type(e).__name__)

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "LLM [%s] model=%s tokens=%d %dms",
            feature,
            result.model or self._model,
            result.usage.total_tokens,
            duration_ms,
        )
        return result.content or ""


def parse_json_list(raw: str, *, list_key: str | None = None) -> list[dict[str, Any]]:
    """Parse a generated JSON array of objects.

    Strips markdown fences and tolerates prose around the JSON.

    Raises:
        GenerativeParseError: When no list of objects can be recovered.
    """
    text = raw.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        # Remove first and last lines (the fences)
        text = "\n".join(lines[1:-1] if len(lines) > 2 else lines[1:])
        text = text.strip()

    data = _loads_lenient(text)
    if data is None:
        raise GenerativeParseError(raw, "response is not valid JSON")

    if isinstance(data, dict):
        if list_key and isinstance(data.get(list_key), list):
            data = data[list_key]
        else:
            lists = [v for v in data.values() if isinstance(v, list)]
            if len(lists) != 1:
                raise GenerativeParseError(raw, "JSON object does not wrap a single list")
            data = lists[0]

    if not isinstance(data, list):
        raise GenerativeParseError(raw, f"expected a JSON array, got {type(data).__name__}")

    items = [item for item in data if isinstance(item, dict)]
    if len(items) != len(data):
        raise GenerativeParseError(raw, "JSON array contains non-object items")
    return items


def _loads_lenient(text: str) -> Any | None:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Models sometimes wrap the JSON in prose; extract the outermost array/object.
    for open_char, close_char in (("[", "]"), ("{", "}")):
        start = text.find(open_char)
        end = text.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                continue
    return None
