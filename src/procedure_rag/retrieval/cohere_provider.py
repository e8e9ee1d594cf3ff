"""Cohere hosted rerank provider."""

from __future__ import annotations

import cohere

from procedure_rag.exceptions import RerankError


class CohereRerankProvider:
    name = "cohere"

    def __init__(
        self,
        api_key: str,
        model: str = "rerank-v3.5",
        max_tokens_per_doc: int = 4096,
        timeout_s: float = 15.0,
        client: cohere.AsyncClientV2 | None = None,
    ) -> None:
        self._client = client or cohere.AsyncClientV2(api_key=api_key, timeout=timeout_s)
        self._model = model
        self._max_tokens_per_doc = max_tokens_per_doc

    async def rerank(
        self,
        query: str,
        documents: list[str],
        top_n: int,
    ) -> list[tuple[int, float]]:
        try:
            response = await self._client.rerank(
                model=self._model,
                query=query,
                documents=documents,
                top_n=top_n,
                max_tokens_per_doc=self._max_tokens_per_doc,
            )
        except Exception as e:
            raise RerankError(f"Cohere rerank failed: {e}") from e
        return [(r.index, float(r.relevance_score)) for r in response.results]
