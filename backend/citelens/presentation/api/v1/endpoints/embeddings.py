"""Embedding ingestion and similarity search endpoints."""

from fastapi import APIRouter, Depends

from citelens.application.schemas import (
    EmbeddingRecordResponse,
    GenerateEmbeddingsRequest,
    SearchRequest,
    SimilarityMatchResponse,
)
from citelens.application.services import EmbeddingService, SimilaritySearchService
from citelens.infrastructure.dependencies import (
    get_embedding_service,
    get_similarity_search_service,
)
from citelens.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/embeddings", tags=["Embeddings"])


@router.post("/generate", response_model=list[EmbeddingRecordResponse])
async def generate_embeddings(
    data: GenerateEmbeddingsRequest,
    service: EmbeddingService = Depends(get_embedding_service),
) -> list[EmbeddingRecordResponse]:
    """Chunk a document and embed every chunk (deduplicated by content)."""
    try:
        records = await service.embed_text(data.text, data.metadata)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return [
        EmbeddingRecordResponse(
            fingerprint=r.fingerprint,
            content=r.content,
            metadata=r.metadata,
            dimensions=len(r.vector),
            indexed=r.is_indexed,
            created_at=r.created_at,
        )
        for r in records
    ]


@router.post("/search", response_model=list[SimilarityMatchResponse])
async def search_similar(
    data: SearchRequest,
    service: SimilaritySearchService = Depends(get_similarity_search_service),
) -> list[SimilarityMatchResponse]:
    """Return the stored chunks most similar to the query text."""
    try:
        matches = await service.search_similar(data.query, data.top_k, data.filter)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return [SimilarityMatchResponse.model_validate(m, from_attributes=True) for m in matches]
