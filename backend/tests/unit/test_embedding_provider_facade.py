"""Unit tests for the FallbackEmbeddingProvider facade."""

import asyncio

import pytest

from citelens.application.services.embedding_provider_facade import FallbackEmbeddingProvider
from citelens.domain.exceptions import ConfigurationError, EmbeddingProviderError


# ── Fakes ────────────────────────────────────────────────────────────


class FakeProvider:
    def __init__(
        self,
        name: str,
        vector: list[float] | None = None,
        *,
        error: Exception | None = None,
        hang: bool = False,
    ):
        self._name = name
        self._vector = vector or [0.1, 0.2, 0.3, 0.4]
        self._error = error
        self._hang = hang
        self.document_calls = 0
        self.query_calls = 0

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> int:
        return len(self._vector)

    async def _respond(self) -> list[float]:
        if self._hang:
            await asyncio.sleep(10)
        if self._error:
            raise self._error
        return list(self._vector)

    async def generate_embeddings(self, texts):
        self.document_calls += 1
        return [await self._respond() for _ in texts]

    async def generate_query_embedding(self, query):
        self.query_calls += 1
        return await self._respond()


# ── Tests ────────────────────────────────────────────────────────────


class TestFallback:
    @pytest.mark.asyncio
    async def test_primary_success_skips_secondary(self):
        primary = FakeProvider("openrouter", [1.0, 0.0, 0.0, 0.0])
        secondary = FakeProvider("cohere")
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        vector = await facade.embed("hello")

        assert vector == [1.0, 0.0, 0.0, 0.0]
        assert primary.document_calls == 1
        assert secondary.document_calls == 0

    @pytest.mark.asyncio
    async def test_primary_timeout_falls_back_to_secondary(self):
        primary = FakeProvider("openrouter", hang=True)
        secondary = FakeProvider("cohere", [0.0, 0.0, 0.0, 1.0])
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4, timeout_seconds=0.05)

        vector = await facade.embed("hello")

        assert vector == [0.0, 0.0, 0.0, 1.0]
        assert secondary.document_calls == 1

    @pytest.mark.asyncio
    async def test_primary_error_falls_back_exactly_once(self):
        primary = FakeProvider("openrouter", error=EmbeddingProviderError("openrouter", 429, "quota"))
        secondary = FakeProvider("cohere")
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        await facade.embed("hello")

        assert primary.document_calls == 1
        assert secondary.document_calls == 1

    @pytest.mark.asyncio
    async def test_both_failing_raises_provider_error_chained_to_secondary(self):
        secondary_error = RuntimeError("cohere exploded")
        primary = FakeProvider("openrouter", error=EmbeddingProviderError("openrouter", 500, "down"))
        secondary = FakeProvider("cohere", error=secondary_error)
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        with pytest.raises(EmbeddingProviderError) as exc_info:
            await facade.embed("hello")

        assert exc_info.value.provider == "cohere"
        assert exc_info.value.__cause__ is secondary_error

    @pytest.mark.asyncio
    async def test_no_secondary_surfaces_primary_error(self):
        primary = FakeProvider("openrouter", hang=True)
        facade = FallbackEmbeddingProvider(primary, None, dimensions=4, timeout_seconds=0.05)

        with pytest.raises(EmbeddingProviderError) as exc_info:
            await facade.embed("hello")

        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_empty_vector_triggers_fallback(self):
        primary = FakeProvider("openrouter")
        primary._vector = []
        secondary = FakeProvider("cohere")
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        vector = await facade.embed("hello")

        assert len(vector) == 4
        assert secondary.document_calls == 1


class TestDimensions:
    @pytest.mark.asyncio
    async def test_dimension_mismatch_raises_configuration_error_without_fallback(self):
        primary = FakeProvider("openrouter", [0.1, 0.2, 0.3])
        secondary = FakeProvider("cohere")
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        with pytest.raises(ConfigurationError):
            await facade.embed("hello")

        assert secondary.document_calls == 0

    @pytest.mark.asyncio
    async def test_secondary_dimension_mismatch_is_configuration_error(self):
        primary = FakeProvider("openrouter", error=RuntimeError("down"))
        secondary = FakeProvider("cohere", [0.1] * 8)
        facade = FallbackEmbeddingProvider(primary, secondary, dimensions=4)

        with pytest.raises(ConfigurationError):
            await facade.embed("hello")


class TestQueryMode:
    @pytest.mark.asyncio
    async def test_embed_query_uses_query_mode(self):
        primary = FakeProvider("openrouter")
        facade = FallbackEmbeddingProvider(primary, None, dimensions=4)

        await facade.embed_query("what is the best crm")

        assert primary.query_calls == 1
        assert primary.document_calls == 0
