"""Unit tests for the OpenRouterClient chat adapter."""

import json

import httpx
import pytest

from citelens.domain.entities import ChatMessage
from citelens.domain.exceptions import ChatProviderError
from citelens.infrastructure.openrouter.openrouter_client import OpenRouterClient


# ── Helpers ──


def _mock_openrouter_response(
    content: str = "Hello!",
    model: str = "openai/gpt-4-turbo",
    total_tokens: int = 15,
) -> dict:
    return {
        "id": "chatcmpl-test123",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "model": model,
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": total_tokens},
    }


def _make_mock_transport(
    response_data: dict | None = None,
    status_code: int = 200,
    captured: list | None = None,
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=response_data or {})

    return httpx.MockTransport(handler)


# ── Tests ──


@pytest.mark.asyncio
async def test_complete_parses_response():
    captured: list[httpx.Request] = []
    transport = _make_mock_transport(_mock_openrouter_response("Because of authority."), captured=captured)
    client = OpenRouterClient(api_key="test-key", http_client=httpx.AsyncClient(transport=transport))

    result = await client.complete(
        messages=[
            ChatMessage(role="system", content="You are an expert."),
            ChatMessage(role="user", content="Why?"),
        ],
        model="openai/gpt-4-turbo",
        temperature=0.7,
        max_tokens=500,
    )

    assert result.content == "Because of authority."
    assert result.usage.total_tokens == 15
    assert result.provider == "openrouter"
    body = json.loads(captured[0].content)
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 500
    assert body["messages"][0] == {"role": "system", "content": "You are an expert."}


@pytest.mark.asyncio
async def test_complete_error_handling():
    transport = _make_mock_transport({"error": {"message": "Rate limited"}}, status_code=429)
    client = OpenRouterClient(api_key="test-key", http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(ChatProviderError) as exc_info:
        await client.complete([ChatMessage(role="user", content="hi")], model="m")

    assert exc_info.value.status_code == 429
    assert "Rate limited" in exc_info.value.message


@pytest.mark.asyncio
async def test_complete_without_choices_raises():
    transport = _make_mock_transport({"choices": []})
    client = OpenRouterClient(api_key="test-key", http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(ChatProviderError):
        await client.complete([ChatMessage(role="user", content="hi")], model="m")


def test_provider_name():
    assert OpenRouterClient(api_key="k").provider_name == "openrouter"
