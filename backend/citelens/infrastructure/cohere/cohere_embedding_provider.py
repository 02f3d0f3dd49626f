"""Cohere embedding provider — calls the v2 /embed endpoint.

Used as the fallback provider. Cohere distinguishes document and query
embeddings through ``input_type`` rather than a text prefix.
"""

import logging
from typing import Any

import httpx

from citelens.application.interfaces.embedding_provider import EmbeddingProvider
from citelens.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

_DOCUMENT_INPUT_TYPE = "search_document"
_QUERY_INPUT_TYPE = "search_query"


class CohereEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via Cohere /v2/embed."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.cohere.com/v2",
        model: str = "embed-v4.0",
        model_dimensions: int = 1536,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._dimensions = model_dimensions
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "cohere"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=120.0)

    async def generate_embeddings(
        self,
        texts: list[str],
        *,
        _query_mode: bool = False,
    ) -> list[list[float]]:
        if not texts:
            return []

        url = f"{self._base_url}/embed"
        payload: dict[str, Any] = {
            "model": self._model,
            "texts": texts,
            "input_type": _QUERY_INPUT_TYPE if _query_mode else _DOCUMENT_INPUT_TYPE,
            "embedding_types": ["float"],
            "output_dimension": self._dimensions,
        }

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    url, headers=self._get_headers(), json=payload
                )
            except httpx.HTTPError as e:
                raise EmbeddingProviderError(
                    provider=self.provider_name,
                    status_code=503,
                    message=f"{type(e).__name__}: {e}",
                ) from e

            if response.status_code != 200:
                self._raise_provider_error(response)

            data = response.json()
            result = (data.get("embeddings") or {}).get("float") or []
            if len(result) != len(texts):
                raise EmbeddingProviderError(
                    provider=self.provider_name,
                    status_code=502,
                    message=f"Expected {len(texts)} embeddings, got {len(result)}",
                )

            logger.info(
                "Generated %d embeddings (model=%s, dims=%d)",
                len(result),
                self._model,
                len(result[0]) if result else 0,
            )
            return result

        finally:
            if should_close:
                await client.aclose()

    async def generate_query_embedding(self, query: str) -> list[float]:
        """Generate a single embedding for a search query."""
        results = await self.generate_embeddings([query], _query_mode=True)
        return results[0]

    def _raise_provider_error(self, response: httpx.Response) -> None:
        try:
            message = response.json().get("message", response.text)
        except (ValueError, AttributeError):
            message = response.text
        logger.error("Cohere embed error %d: %s", response.status_code, message[:500])
        raise EmbeddingProviderError(
            provider=self.provider_name,
            status_code=response.status_code,
            message=message[:500],
        )
