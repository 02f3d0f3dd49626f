"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from citelens.config import get_settings
from citelens.infrastructure.database.session import async_session_factory, engine, init_db
from citelens.infrastructure.dependencies import build_core_services
from citelens.infrastructure.logging.log_config import setup_logging
from citelens.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, wire shared services, start the reconciler."""
    settings = get_settings()
    setup_logging()

    # 1. Create all database tables (enable pgvector extension first)
    await init_db()

    # 2. Shared HTTP clients (connection pooling across requests)
    provider_http_client = httpx.AsyncClient(timeout=max(
        settings.provider_timeout_seconds, settings.reasoning_timeout_seconds
    ))
    index_http_client = httpx.AsyncClient(timeout=settings.vector_index_timeout_seconds)

    try:
        # 3. Process-wide services: providers, cache, vector index
        core = build_core_services(
            settings,
            session_factory=async_session_factory,
            provider_http_client=provider_http_client,
            index_http_client=index_http_client,
        )
        await core.vector_index.ensure_ready()
        app.state.core = core

        # 4. Start the index reconciler
        await core.reconciler.start()

        yield

        # Shutdown
        await core.reconciler.stop()
        app.state.core = None
    finally:
        await provider_http_client.aclose()
        await index_http_client.aclose()
        await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "citelens.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
