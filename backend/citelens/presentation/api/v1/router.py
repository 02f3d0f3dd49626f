"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from citelens.presentation.api.v1.endpoints.health import router as health_router
from citelens.presentation.api.v1.endpoints.embeddings import router as embeddings_router
from citelens.presentation.api.v1.endpoints.analysis import router as analysis_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(embeddings_router)
router.include_router(analysis_router)
