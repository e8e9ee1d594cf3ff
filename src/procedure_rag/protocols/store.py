"""Protocol for the external document store."""

from __future__ import annotations

from typing import Protocol

from procedure_rag.models.domain import RankedCandidate, SearchFilters


class DocumentStore(Protocol):
    async def hybrid_search(
        self,
        query_text: str,
        query_embedding: list[float],
        match_count: int,
        rrf_k: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]: ...

    async def vector_search(
        self,
        query_embedding: list[float],
        match_count: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]: ...

    async def fetch_by_article_numbers(
        self, article_numbers: list[str]
    ) -> list[RankedCandidate]: ...
