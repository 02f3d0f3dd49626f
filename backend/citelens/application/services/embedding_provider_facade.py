"""Embedding provider facade — primary provider with a single fallback."""

import asyncio
import logging

from citelens.application.interfaces.embedding_provider import EmbeddingProvider
from citelens.domain.exceptions import ConfigurationError, EmbeddingProviderError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 30.0


class FallbackEmbeddingProvider:
    """Returns fixed-dimension vectors from a primary or a secondary provider.

    Any error from the primary (HTTP error, quota, malformed body, timeout)
    triggers exactly one attempt against the secondary. A vector of the
    wrong dimension is a deployment error and is raised immediately as
    ConfigurationError, without fallback. Higher-level retry policy belongs
    to the caller.
    """

    def __init__(
        self,
        primary: EmbeddingProvider,
        secondary: EmbeddingProvider | None,
        *,
        dimensions: int,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ):
        self._primary = primary
        self._secondary = secondary
        self._dimensions = dimensions
        self._timeout = timeout_seconds

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        """Embed a document chunk."""
        return await self._embed(text, query_mode=False)

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search query (providers may use a query-specific mode)."""
        return await self._embed(text, query_mode=True)

    async def _embed(self, text: str, *, query_mode: bool) -> list[float]:
        try:
            vector = await self._call(self._primary, text, query_mode=query_mode)
        except ConfigurationError:
            raise
        except Exception as primary_error:
            if self._secondary is None:
                raise self._as_provider_error(self._primary, primary_error) from primary_error

            logger.warning(
                "Primary embedding provider %s failed (%s: %s); falling back to %s",
                self._primary.provider_name,
                type(primary_error).__name__,
                primary_error,
                self._secondary.provider_name,
            )
            try:
                vector = await self._call(self._secondary, text, query_mode=query_mode)
            except ConfigurationError:
                raise
            except Exception as secondary_error:
                logger.error(
                    "Fallback embedding provider %s failed: %s",
                    self._secondary.provider_name,
                    secondary_error,
                )
                raise self._as_provider_error(
                    self._secondary, secondary_error
                ) from secondary_error
            self._check_dimensions(self._secondary, vector)
            return vector
        else:
            self._check_dimensions(self._primary, vector)
            return vector

    async def _call(
        self, provider: EmbeddingProvider, text: str, *, query_mode: bool
    ) -> list[float]:
        if query_mode:
            vector = await asyncio.wait_for(
                provider.generate_query_embedding(text), timeout=self._timeout
            )
        else:
            vectors = await asyncio.wait_for(
                provider.generate_embeddings([text]), timeout=self._timeout
            )
            vector = vectors[0] if vectors else []

        if not vector:
            raise EmbeddingProviderError(
                provider=provider.provider_name,
                status_code=502,
                message="Provider returned no embedding",
            )
        return vector

    def _check_dimensions(self, provider: EmbeddingProvider, vector: list[float]) -> None:
        if len(vector) != self._dimensions:
            raise ConfigurationError(
                f"Embedding provider '{provider.provider_name}' returned "
                f"{len(vector)} dimensions, deployment expects {self._dimensions}"
            )

    @staticmethod
    def _as_provider_error(
        provider: EmbeddingProvider, error: Exception
    ) -> EmbeddingProviderError:
        if isinstance(error, EmbeddingProviderError):
            return EmbeddingProviderError(
                provider=error.provider,
                status_code=error.status_code,
                message=error.message,
            )
        if isinstance(error, TimeoutError):
            return EmbeddingProviderError(
                provider=provider.provider_name,
                status_code=504,
                message="Embedding request timed out",
            )
        return EmbeddingProviderError(
            provider=provider.provider_name,
            status_code=getattr(error, "status_code", 500),
            message=str(error) or type(error).__name__,
        )
