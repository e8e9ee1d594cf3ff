"""Search endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from procedure_rag.api.dependencies import get_quality_gate, get_search_pipeline, get_settings
from procedure_rag.api.rate_limiter import rate_limit
from procedure_rag.config.settings import Settings
from procedure_rag.exceptions import RAGEngineError
from procedure_rag.generation.prompt_templates import SEARCH_DISCLAIMER
from procedure_rag.models.domain import SearchFilters
from procedure_rag.models.schemas import SearchRequest, SearchResponseModel
from procedure_rag.observability.logger import get_logger
from procedure_rag.pipeline.search_pipeline import RagSearchPipeline
from procedure_rag.scoring.quality_gate import QualityGate

logger = get_logger("routes_search")

router = APIRouter()


@router.post("/search", response_model=SearchResponseModel)
async def search(
    request: SearchRequest,
    pipeline: RagSearchPipeline = Depends(get_search_pipeline),
    gate: QualityGate = Depends(get_quality_gate),
    settings: Settings = Depends(get_settings),
    _client: str = Depends(rate_limit),
) -> SearchResponseModel:
    filters = None
    if request.filters:
        filters = SearchFilters(
            language=settings.pivot_language,
            source=request.filters.source,
            doc_type=request.filters.doc_type,
        )

    try:
        response = await pipeline.search(
            request.query,
            language=request.language,
            count=request.count,
            filters=filters,
        )
    except RAGEngineError as e:
        logger.error("search_failed", error=str(e), error_type=type(e).__name__)
        raise HTTPException(status_code=500, detail="Search failed. Please try again later.")

    quality = gate.assess(response.results)
    return SearchResponseModel(
        results=[asdict(r) for r in response.results],
        query_info=asdict(response.query_info),
        total=response.total,
        quality=asdict(quality),
        disclaimer=SEARCH_DISCLAIMER,
    )
