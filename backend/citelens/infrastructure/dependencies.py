"""FastAPI dependency injection — wires infrastructure to the application layer.

Two lifetimes:
- process-wide: the embedding cache (it owns the in-flight map), the
  provider facade, the vector index, the prediction pipeline and the
  reconciler. Built once by
  ``build_core_services`` in the lifespan and kept on ``app.state``.
- per-request: repositories bound to the request's DB session and the
  pipeline services composed from them.
"""

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass

import httpx
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from citelens.application.interfaces import EmbeddingProvider, VectorIndex
from citelens.application.services import (
    AnalysisService,
    EmbeddingCache,
    EmbeddingService,
    FallbackEmbeddingProvider,
    IndexReconciler,
    PredictionService,
    ReasoningService,
    SimilaritySearchService,
    TextChunker,
)
from citelens.config import Settings, get_settings
from citelens.domain.exceptions import ConfigurationError
from citelens.infrastructure.cache import MemoryTTLCache
from citelens.infrastructure.cohere import CohereEmbeddingProvider
from citelens.infrastructure.database.repositories import (
    PgEmbeddingRecordRepository,
    SQLAlchemyAnalysisRepository,
    SQLAlchemyCitationRepository,
    SQLAlchemyKeywordRepository,
)
from citelens.infrastructure.database.session import get_db_session
from citelens.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider
from citelens.infrastructure.vector_index import AstraVectorIndex, PgVectorIndex

logger = logging.getLogger(__name__)


@dataclass
class CoreServices:
    """Process-wide singletons shared by every request."""

    embedding_cache: EmbeddingCache
    embedding_service: EmbeddingService
    similarity_search: SimilaritySearchService
    reasoning: ReasoningService
    prediction: PredictionService
    vector_index: VectorIndex
    reconciler: IndexReconciler


def _build_embedding_providers(
    settings: Settings, http_client: httpx.AsyncClient
) -> tuple[EmbeddingProvider, EmbeddingProvider | None]:
    """Return (primary, secondary). OpenRouter is primary whenever it is configured."""
    providers: list[EmbeddingProvider] = []
    if settings.openrouter_api_key.strip():
        providers.append(
            OpenRouterEmbeddingProvider(
                api_key=settings.openrouter_api_key.strip(),
                base_url=settings.openrouter_base_url,
                app_name=settings.openrouter_app_name,
                model=settings.embedding_model,
                model_dimensions=settings.embedding_dimensions,
                http_client=http_client,
            )
        )
    if settings.cohere_api_key.strip():
        providers.append(
            CohereEmbeddingProvider(
                api_key=settings.cohere_api_key.strip(),
                base_url=settings.cohere_base_url,
                model=settings.cohere_embedding_model,
                model_dimensions=settings.embedding_dimensions,
                http_client=http_client,
            )
        )

    if not providers:
        raise ConfigurationError(
            "No embedding provider configured: set OPENROUTER_API_KEY and/or COHERE_API_KEY"
        )
    if len(providers) == 1:
        logger.warning(
            "Only one embedding provider configured (%s); fallback is disabled",
            providers[0].provider_name,
        )
        return providers[0], None
    return providers[0], providers[1]


def _build_vector_index(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
) -> VectorIndex:
    backend = settings.vector_index_backend.strip().lower()
    if backend == "pgvector":
        return PgVectorIndex(session_factory)
    if backend == "astra":
        if not settings.astra_api_endpoint.strip() or not settings.astra_token.strip():
            raise ConfigurationError(
                "vector_index_backend=astra requires ASTRA_API_ENDPOINT and ASTRA_TOKEN"
            )
        return AstraVectorIndex(
            api_endpoint=settings.astra_api_endpoint.strip(),
            token=settings.astra_token.strip(),
            keyspace=settings.astra_keyspace,
            collection=settings.astra_collection,
            dimensions=settings.embedding_dimensions,
            timeout_seconds=settings.vector_index_timeout_seconds,
            http_client=http_client,
        )
    raise ConfigurationError(f"Unknown vector_index_backend '{settings.vector_index_backend}'")


def build_core_services(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession],
    provider_http_client: httpx.AsyncClient,
    index_http_client: httpx.AsyncClient,
) -> CoreServices:
    """Wire the process-wide services. Raises ConfigurationError on bad settings."""
    primary, secondary = _build_embedding_providers(settings, provider_http_client)
    facade = FallbackEmbeddingProvider(
        primary,
        secondary,
        dimensions=settings.embedding_dimensions,
        timeout_seconds=settings.provider_timeout_seconds,
    )

    vector_index = _build_vector_index(settings, session_factory, index_http_client)
    record_repository = PgEmbeddingRecordRepository(session_factory)
    ephemeral = MemoryTTLCache(
        default_ttl=settings.embedding_cache_ttl_seconds,
        max_entries=settings.embedding_cache_max_entries,
    )
    embedding_cache = EmbeddingCache(
        facade,
        record_repository,
        ephemeral,
        vector_index,
        ttl_seconds=settings.embedding_cache_ttl_seconds,
    )

    chunker = TextChunker(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)
    reasoning = ReasoningService(
        OpenRouterClient(
            api_key=settings.openrouter_api_key.strip(),
            base_url=settings.openrouter_base_url,
            app_name=settings.openrouter_app_name,
            http_client=provider_http_client,
        ),
        model=settings.reasoning_model,
        timeout_seconds=settings.reasoning_timeout_seconds,
    )

    embedding_service = EmbeddingService(
        embedding_cache, chunker, concurrency=settings.embedding_concurrency
    )
    similarity_search = SimilaritySearchService(embedding_cache, vector_index)

    logger.info(
        "Core services wired: embeddings=%s%s dims=%d, index=%s",
        primary.provider_name,
        f"→{secondary.provider_name}" if secondary else "",
        settings.embedding_dimensions,
        vector_index.backend_name,
    )
    return CoreServices(
        embedding_cache=embedding_cache,
        embedding_service=embedding_service,
        similarity_search=similarity_search,
        reasoning=reasoning,
        prediction=PredictionService(
            embedding_service=embedding_service,
            similarity_search=similarity_search,
            reasoning=reasoning,
            top_k=settings.prediction_top_k,
            concurrency=settings.embedding_concurrency,
        ),
        vector_index=vector_index,
        reconciler=IndexReconciler(
            embedding_cache,
            record_repository,
            interval_seconds=settings.reconcile_interval_seconds,
            batch_size=settings.reconcile_batch_size,
        ),
    )


def get_core_services(request: Request) -> CoreServices:
    """Provides the process-wide services built during startup."""
    core = getattr(request.app.state, "core", None)
    if core is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Embedding services are not initialized",
        )
    return core


async def get_embedding_service(
    core: CoreServices = Depends(get_core_services),
) -> AsyncGenerator[EmbeddingService, None]:
    yield core.embedding_service


async def get_similarity_search_service(
    core: CoreServices = Depends(get_core_services),
) -> AsyncGenerator[SimilaritySearchService, None]:
    yield core.similarity_search


async def get_analysis_service(
    session: AsyncSession = Depends(get_db_session),
    core: CoreServices = Depends(get_core_services),
) -> AsyncGenerator[AnalysisService, None]:
    """Provides an AnalysisService with request-scoped repositories."""
    settings = get_settings()
    yield AnalysisService(
        citation_repo=SQLAlchemyCitationRepository(session),
        keyword_repo=SQLAlchemyKeywordRepository(session),
        analysis_repo=SQLAlchemyAnalysisRepository(session),
        similarity_search=core.similarity_search,
        reasoning=core.reasoning,
        top_k=settings.analysis_top_k,
    )


async def get_prediction_service(
    core: CoreServices = Depends(get_core_services),
) -> AsyncGenerator[PredictionService, None]:
    yield core.prediction
