"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from procedure_rag.api.dependencies import get_services
from procedure_rag.models.schemas import HealthResponse
from procedure_rag.services import Services

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(services: Services = Depends(get_services)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        store_backend=services.settings.store_backend,
        rerank_mode=services.reranker.mode,
        embedding_model=services.settings.embedding_model,
    )
