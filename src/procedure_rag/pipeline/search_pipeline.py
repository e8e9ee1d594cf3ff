"""Search orchestrator: normalize, retrieve bilingually, rerank, expand references."""

from __future__ import annotations

from procedure_rag.concurrency import gather_or_cancel
from procedure_rag.config.settings import Settings
from procedure_rag.models.domain import QueryInfo, SearchFilters, SearchResponse
from procedure_rag.observability.logger import get_logger
from procedure_rag.observability.metrics import log_latency, log_retrieval_metrics
from procedure_rag.observability.tracing import TraceContext
from procedure_rag.protocols.embedder import Embedder
from procedure_rag.query.language import detect_language, normalize_text
from procedure_rag.query.normalizer import QueryNormalizer
from procedure_rag.retrieval.cross_references import CrossReferenceExpander
from procedure_rag.retrieval.hybrid_retriever import BilingualRetriever
from procedure_rag.retrieval.reranker import Reranker
from procedure_rag.storage.sqlite_trace_store import SQLiteTraceStore

logger = get_logger("search_pipeline")


class RagSearchPipeline:
    def __init__(
        self,
        normalizer: QueryNormalizer,
        embedder: Embedder,
        retriever: BilingualRetriever,
        reranker: Reranker,
        cross_references: CrossReferenceExpander,
        settings: Settings,
        trace_store: SQLiteTraceStore | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._embedder = embedder
        self._retriever = retriever
        self._reranker = reranker
        self._cross_references = cross_references
        self._settings = settings
        self._trace_store = trace_store

    async def search(
        self,
        query: str,
        language: str | None = None,
        count: int | None = None,
        filters: SearchFilters | None = None,
        trace: TraceContext | None = None,
    ) -> SearchResponse:
        count = count or self._settings.default_result_count
        filters = filters or SearchFilters(language=self._settings.pivot_language)
        owns_trace = trace is None
        trace = trace or TraceContext(kind="search")
        pivot = self._settings.pivot_language

        # STEP 1: Normalize + detect
        original_query = query
        query = normalize_text(query)
        detected = language or detect_language(query)

        # STEP 2: Translate to the corpus language
        with trace.span("translation", language=detected):
            pivot_query = await self._normalizer.translate_to_pivot(query, detected)

        # STEP 3: Expansion and embeddings in parallel
        with trace.span("expansion_embedding"):
            tasks = [
                self._normalizer.expand_query(pivot_query),
                self._embedder.embed(pivot_query),
            ]
            if detected != pivot:
                tasks.append(self._embedder.embed(query))
            expansions, pivot_embedding, *optional = await gather_or_cancel(*tasks)
        original_embedding = optional[0] if optional else None

        # STEP 4: Hybrid retrieval (+ original-language vector search)
        with trace.span("retrieval") as span:
            candidates = await self._retriever.retrieve(
                pivot_query,
                expansions,
                pivot_embedding,
                original_embedding,
                count,
                filters,
            )
            span.metadata["candidates"] = len(candidates)

        # STEP 5: Rerank against the pivot query, documents are in the pivot language
        with trace.span("reranking", mode=self._reranker.mode):
            reranked = await self._reranker.rerank(pivot_query, candidates, top_n=count)

        # STEP 6: Pull in cited law articles
        with trace.span("cross_references"):
            expanded = await self._cross_references.expand(reranked)

        results = [c.to_result_item() for c in expanded]
        log_retrieval_metrics(trace.trace_id, detected, results)
        for s in trace.spans:
            log_latency(trace.trace_id, s.name, s.duration_ms)

        logger.info(
            "search_complete",
            trace_id=trace.trace_id,
            detected_language=detected,
            pivot_query=pivot_query[:80],
            expansions=expansions,
            results=len(results),
            latency_ms=round(trace.elapsed_ms, 2),
        )

        if owns_trace:
            await self.save_trace(trace.to_trace(query=original_query, detected_language=detected))

        return SearchResponse(
            results=results,
            query_info=QueryInfo(
                original_query=original_query,
                detected_language=detected,
                pivot_query=pivot_query,
            ),
            total=len(results),
        )

    async def save_trace(self, trace) -> None:
        if self._trace_store is None:
            return
        try:
            await self._trace_store.save_trace(trace)
        except Exception as e:
            logger.warning("trace_save_failed", trace_id=trace.trace_id, error=str(e))
