"""Astra DB vector index — JSON Data API commands over httpx.

Every entry is a document ``{_id: fingerprint, $vector: [...], metadata: {...}}``
in a collection created with the cosine metric. Astra reports similarity as
``(1 + cos) / 2``; scores are converted back to cosine before returning.
"""

import logging
from typing import Any

import httpx

from citelens.application.interfaces.vector_index import VectorIndex
from citelens.domain.entities.similarity import VectorIndexMatch
from citelens.domain.exceptions import IndexUnavailableError

logger = logging.getLogger(__name__)

_API_PATH = "api/json/v1"
# Data API caps vector-sorted finds at 1000 documents
_MAX_FIND_LIMIT = 1000


class AstraVectorIndex(VectorIndex):
    """Infrastructure adapter — talks to an Astra DB collection via the Data API."""

    def __init__(
        self,
        api_endpoint: str,
        token: str,
        *,
        keyspace: str = "default_keyspace",
        collection: str = "vectors",
        dimensions: int = 1536,
        timeout_seconds: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_endpoint = api_endpoint.rstrip("/")
        self._token = token
        self._keyspace = keyspace
        self._collection = collection
        self._dimensions = dimensions
        self._timeout = timeout_seconds
        self._http_client = http_client

    @property
    def backend_name(self) -> str:
        return "astra"

    @property
    def _keyspace_url(self) -> str:
        return f"{self._api_endpoint}/{_API_PATH}/{self._keyspace}"

    @property
    def _collection_url(self) -> str:
        return f"{self._keyspace_url}/{self._collection}"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Token": self._token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def ensure_ready(self) -> None:
        """createCollection is idempotent when the options match."""
        await self._command(
            self._keyspace_url,
            "createCollection",
            {
                "name": self._collection,
                "options": {
                    "vector": {"dimension": self._dimensions, "metric": "cosine"},
                },
            },
        )
        logger.info(
            "Astra collection ready: %s.%s (dims=%d)",
            self._keyspace,
            self._collection,
            self._dimensions,
        )

    async def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        await self._command(
            self._collection_url,
            "findOneAndReplace",
            {
                "filter": {"_id": id},
                "replacement": {"_id": id, "$vector": vector, "metadata": metadata},
                "options": {"upsert": True},
            },
        )

    async def query(
        self,
        vector: list[float],
        top_k: int = 10,
        filter: dict[str, Any] | None = None,
    ) -> list[VectorIndexMatch]:
        if top_k <= 0:
            return []

        body: dict[str, Any] = {
            "sort": {"$vector": vector},
            "projection": {"$vector": 0},
            "options": {"limit": min(top_k, _MAX_FIND_LIMIT), "includeSimilarity": True},
        }
        if filter:
            body["filter"] = {f"metadata.{key}": value for key, value in filter.items()}

        data = await self._command(self._collection_url, "find", body)
        documents = (data.get("data") or {}).get("documents") or []

        matches = [
            VectorIndexMatch(
                id=str(doc.get("_id")),
                score=_to_cosine(doc.get("$similarity", 0.0)),
                metadata=doc.get("metadata") or {},
            )
            for doc in documents
        ]
        # Stable: equal scores keep the backend's order
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    async def delete_by_ids(self, ids: list[str]) -> None:
        if not ids:
            return
        await self._command(
            self._collection_url,
            "deleteMany",
            {"filter": {"_id": {"$in": list(ids)}}},
        )

    async def _command(self, url: str, name: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST one Data API command; any failure becomes IndexUnavailableError."""
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    url, headers=self._get_headers(), json={name: body}
                )
            except httpx.HTTPError as e:
                raise IndexUnavailableError(name, f"{type(e).__name__}: {e}") from e

            if response.status_code != 200:
                raise IndexUnavailableError(
                    name, f"HTTP {response.status_code}: {response.text[:500]}"
                )

            try:
                data = response.json()
            except ValueError as e:
                raise IndexUnavailableError(name, "response is not valid JSON") from e

            errors = data.get("errors") if isinstance(data, dict) else None
            if errors:
                messages = "; ".join(
                    str(err.get("message") or err.get("errorCode") or err) for err in errors
                )
                logger.error("Astra %s failed: %s", name, messages)
                raise IndexUnavailableError(name, messages)

            return data

        finally:
            if should_close:
                await client.aclose()


def _to_cosine(similarity: float) -> float:
    """Map Astra's ``(1 + cos) / 2`` similarity back to cosine in [-1, 1]."""
    return 2.0 * float(similarity) - 1.0
