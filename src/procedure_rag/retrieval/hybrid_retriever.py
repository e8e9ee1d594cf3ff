"""Bilingual hybrid retriever over the document store."""

from __future__ import annotations

from procedure_rag.concurrency import gather_or_cancel
from procedure_rag.config.constants import KEYWORD_QUERY_SEPARATOR, RRF_K
from procedure_rag.exceptions import RetrievalError
from procedure_rag.models.domain import RankedCandidate, SearchFilters
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.store import DocumentStore
from procedure_rag.retrieval.rrf import reciprocal_rank_fusion

logger = get_logger("hybrid_retriever")


def candidate_count(final_count: int, max_candidates: int = 20) -> int:
    """Over-fetch for the reranker, capped so rerank cost stays bounded."""
    return min(final_count * 2, max_candidates)


def build_keyword_query(pivot_query: str, expansions: list[str], max_expansions: int = 2) -> str:
    return KEYWORD_QUERY_SEPARATOR.join([pivot_query, *expansions[:max_expansions]])


class BilingualRetriever:
    def __init__(
        self,
        store: DocumentStore,
        rrf_k: int = RRF_K,
        max_candidates: int = 20,
        keyword_expansions: int = 2,
    ) -> None:
        self._store = store
        self._rrf_k = rrf_k
        self._max_candidates = max_candidates
        self._keyword_expansions = keyword_expansions

    async def retrieve(
        self,
        pivot_query: str,
        expansions: list[str],
        pivot_embedding: list[float],
        original_embedding: list[float] | None,
        final_count: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]:
        n = candidate_count(final_count, self._max_candidates)
        keyword_query = build_keyword_query(pivot_query, expansions, self._keyword_expansions)

        try:
            if original_embedding is None:
                hybrid = await self._store.hybrid_search(
                    keyword_query, pivot_embedding, n, self._rrf_k, filters
                )
                logger.info("retrieval_results", hybrid_count=len(hybrid), bilingual=False)
                return hybrid

            hybrid, vector = await gather_or_cancel(
                self._store.hybrid_search(keyword_query, pivot_embedding, n, self._rrf_k, filters),
                self._store.vector_search(original_embedding, n, filters),
            )
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Document store search failed: {e}") from e

        logger.info(
            "retrieval_results",
            hybrid_count=len(hybrid),
            vector_count=len(vector),
            bilingual=True,
        )
        return reciprocal_rank_fusion([hybrid, vector], k=self._rrf_k, limit=n)
