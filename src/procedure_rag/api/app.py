"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from procedure_rag.api.middleware import RequestTimingMiddleware
from procedure_rag.api.rate_limiter import SlidingWindowRateLimiter
from procedure_rag.api.routes_chat import router as chat_router
from procedure_rag.api.routes_health import router as health_router
from procedure_rag.api.routes_search import router as search_router
from procedure_rag.config.settings import Settings
from procedure_rag.observability.logger import get_logger, setup_logging
from procedure_rag.services import Services, build_services

logger = get_logger("app")


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the app. Passing ``services`` skips provider construction (used by tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or (services.settings if services else Settings())
        setup_logging(resolved.log_level, json=resolved.log_json)

        app.state.settings = resolved
        app.state.rate_limiter = SlidingWindowRateLimiter()
        app.state.services = services or await build_services(resolved)

        logger.info("startup_complete", store_backend=resolved.store_backend)
        yield

        if services is None:
            await app.state.services.aclose()
        logger.info("shutdown_complete")

    app = FastAPI(
        title="Procedure RAG",
        version="1.0.0",
        description="Retrieval pipeline for French administrative procedures",
        lifespan=lifespan,
    )
    app.add_middleware(RequestTimingMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(search_router, tags=["search"])
    app.include_router(chat_router, tags=["chat"])
    return app
