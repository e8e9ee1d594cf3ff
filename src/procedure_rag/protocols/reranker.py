"""Protocol for cross-encoder rerank providers."""

from __future__ import annotations

from typing import Protocol


class RerankProvider(Protocol):
    name: str

    async def rerank(
        self,
        query: str,
        documents: list[str],
        top_n: int,
    ) -> list[tuple[int, float]]:
        """Returns (document index, relevance score) pairs, most relevant first."""
        ...
