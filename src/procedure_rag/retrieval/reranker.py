"""Relevance reranking with a degraded positional fallback."""

from __future__ import annotations

from dataclasses import replace

from procedure_rag.models.domain import RankedCandidate
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.reranker import RerankProvider

logger = get_logger("reranker")


def positional_scores(candidates: list[RankedCandidate], top_n: int) -> list[RankedCandidate]:
    """Keep input order and score by position: 1 - i/n."""
    n = len(candidates)
    return [replace(c, rrf_score=1.0 - i / n) for i, c in enumerate(candidates)][:top_n]


class Reranker:
    def __init__(self, provider: RerankProvider | None = None) -> None:
        self._provider = provider

    @property
    def mode(self) -> str:
        return self._provider.name if self._provider else "degraded"

    async def rerank(
        self,
        query: str,
        candidates: list[RankedCandidate],
        top_n: int,
    ) -> list[RankedCandidate]:
        if not candidates:
            return []
        if self._provider is None:
            return positional_scores(candidates, top_n)

        try:
            ranked = await self._provider.rerank(
                query, [c.content for c in candidates], top_n
            )
        except Exception as e:
            logger.warning(
                "rerank_degraded",
                provider=self._provider.name,
                error=str(e),
                count=len(candidates),
            )
            return positional_scores(candidates, top_n)

        result = [
            replace(candidates[index], rrf_score=score)
            for index, score in ranked
            if 0 <= index < len(candidates)
        ][:top_n]

        logger.info(
            "reranked",
            provider=self._provider.name,
            input_count=len(candidates),
            output_count=len(result),
            top_score=round(result[0].rrf_score, 4) if result else 0.0,
        )
        return result
