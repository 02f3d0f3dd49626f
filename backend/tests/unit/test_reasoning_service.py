"""Unit tests for ReasoningService and the JSON list parser."""

import asyncio

import pytest

from citelens.application.services.reasoning_service import ReasoningService, parse_json_list
from citelens.domain.entities import (
    ChatCompletionResult,
    ListOk,
    ParseFailed,
    ResultStatus,
    TextOk,
    TokenUsage,
    Unavailable,
)
from citelens.domain.exceptions import ChatProviderError, GenerativeParseError


class FakeChatProvider:
    provider_name = "fake"

    def __init__(self, content: str = "", error: Exception | None = None, delay: float = 0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def complete(self, messages, model, *, temperature=None, max_tokens=None):
        self.calls.append({"messages": messages, "model": model, "max_tokens": max_tokens})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return ChatCompletionResult(
            model=model, content=self.content, finish_reason="stop", usage=TokenUsage(total_tokens=12)
        )


# ── generate_text ──


@pytest.mark.asyncio
async def test_generate_text_ok():
    provider = FakeChatProvider("  Strong topical match.  ")
    service = ReasoningService(provider, model="openai/gpt-4-turbo")

    result = await service.generate_text("sys", "prompt", feature="test", max_tokens=500)

    assert result == TextOk(text="Strong topical match.")
    call = provider.calls[0]
    assert call["model"] == "openai/gpt-4-turbo"
    assert call["max_tokens"] == 500
    assert [m.role for m in call["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_generate_text_provider_error_is_unavailable():
    service = ReasoningService(FakeChatProvider(error=ChatProviderError("openrouter", 500, "boom")))

    result = await service.generate_text("sys", "prompt", feature="test")

    assert isinstance(result, Unavailable)
    assert ResultStatus.of(result) == ResultStatus.UNAVAILABLE


@pytest.mark.asyncio
async def test_generate_text_timeout_is_unavailable():
    service = ReasoningService(FakeChatProvider("late", delay=1.0), timeout_seconds=0.01)

    result = await service.generate_text("sys", "prompt", feature="test")

    assert result == Unavailable(reason="timeout")


@pytest.mark.asyncio
async def test_generate_text_empty_completion_is_unavailable():
    service = ReasoningService(FakeChatProvider("   "))

    result = await service.generate_text("sys", "prompt", feature="test")

    assert isinstance(result, Unavailable)


# ── generate_list ──


@pytest.mark.asyncio
async def test_generate_list_parses_fenced_array():
    content = '```json\n[{"action": "Add FAQ", "priority": "high"}]\n```'
    service = ReasoningService(FakeChatProvider(content))

    result = await service.generate_list("sys", "prompt", feature="test")

    assert result == ListOk(items=[{"action": "Add FAQ", "priority": "high"}])


@pytest.mark.asyncio
async def test_generate_list_unwraps_keyed_object():
    content = '{"recommendations": [{"action": "a"}, {"action": "b"}], "note": "x"}'
    service = ReasoningService(FakeChatProvider(content))

    result = await service.generate_list("sys", "prompt", feature="test", list_key="recommendations")

    assert isinstance(result, ListOk)
    assert [i["action"] for i in result.items] == ["a", "b"]


@pytest.mark.asyncio
async def test_generate_list_malformed_json_is_parse_failed():
    service = ReasoningService(FakeChatProvider("Here are my thoughts, no JSON at all."))

    result = await service.generate_list("sys", "prompt", feature="test")

    assert isinstance(result, ParseFailed)
    assert result.raw == "Here are my thoughts, no JSON at all."
    assert ResultStatus.of(result) == ResultStatus.PARSE_FAILED


@pytest.mark.asyncio
async def test_generate_list_provider_failure_is_unavailable():
    service = ReasoningService(FakeChatProvider(error=RuntimeError("connection reset")))

    result = await service.generate_list("sys", "prompt", feature="test")

    assert result == Unavailable(reason="connection reset")


# ── parse_json_list ──


def test_parse_json_list_tolerates_surrounding_prose():
    raw = 'Sure! Here you go:\n[{"missing": "pricing table"}]\nHope that helps.'

    assert parse_json_list(raw) == [{"missing": "pricing table"}]


def test_parse_json_list_rejects_non_object_items():
    with pytest.raises(GenerativeParseError):
        parse_json_list('["just", "strings"]')


def test_parse_json_list_rejects_ambiguous_object():
    with pytest.raises(GenerativeParseError):
        parse_json_list('{"a": [], "b": []}')
