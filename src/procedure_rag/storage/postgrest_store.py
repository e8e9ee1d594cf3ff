"""Hosted document store reached through a PostgREST endpoint.

Hybrid and vector search run as database RPCs; the article lookup used for
cross-reference expansion is a plain table select.
"""

from __future__ import annotations

import json

import httpx

from procedure_rag.exceptions import RetrievalError
from procedure_rag.models.domain import RankedCandidate, SearchFilters
from procedure_rag.observability.logger import get_logger

logger = get_logger("postgrest_store")

CHUNK_COLUMNS = "id,content,source,doc_type,article_number,code_name,source_url,metadata"


def row_to_candidate(row: dict) -> RankedCandidate:
    return RankedCandidate(
        id=str(row["id"]),
        content=row["content"],
        source=row["source"],
        doc_type=row["doc_type"],
        article_number=row.get("article_number"),
        code_name=row.get("code_name"),
        source_url=row.get("source_url"),
        metadata=row.get("metadata"),
        semantic_rank=row.get("semantic_rank"),
        keyword_rank=row.get("keyword_rank"),
        similarity=row.get("similarity"),
        rrf_score=float(row.get("rrf_score") or 0.0),
    )


class PostgrestDocumentStore:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout_s,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def hybrid_search(
        self,
        query_text: str,
        query_embedding: list[float],
        match_count: int,
        rrf_k: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]:
        rows = await self._rpc(
            "hybrid_search",
            {
                "query_text": query_text,
                "query_embedding": json.dumps(query_embedding),
                "match_count": match_count,
                "rrf_k": rrf_k,
                **self._filter_params(filters),
            },
        )
        return [row_to_candidate(r) for r in rows]

    async def vector_search(
        self,
        query_embedding: list[float],
        match_count: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]:
        rows = await self._rpc(
            "vector_search",
            {
                "query_embedding": json.dumps(query_embedding),
                "match_count": match_count,
                **self._filter_params(filters),
            },
        )
        # Vector rows carry only a similarity; their position is the semantic rank.
        candidates = []
        for rank, row in enumerate(rows, start=1):
            candidate = row_to_candidate(row)
            candidate.semantic_rank = rank
            candidates.append(candidate)
        return candidates

    async def fetch_by_article_numbers(self, article_numbers: list[str]) -> list[RankedCandidate]:
        if not article_numbers:
            return []
        quoted = ",".join(f'"{n}"' for n in article_numbers)
        try:
            response = await self._client.get(
                "/document_chunks",
                params={"select": CHUNK_COLUMNS, "article_number": f"in.({quoted})"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RetrievalError(f"Article lookup failed: {e}") from e
        return [row_to_candidate(r) for r in response.json()]

    async def _rpc(self, name: str, payload: dict) -> list[dict]:
        try:
            response = await self._client.post(f"/rpc/{name}", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("rpc_failed", rpc=name, status=e.response.status_code)
            raise RetrievalError(f"{name} failed with status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("rpc_failed", rpc=name, error=str(e))
            raise RetrievalError(f"{name} failed: {e}") from e
        return response.json() or []

    @staticmethod
    def _filter_params(filters: SearchFilters) -> dict:
        return {
            "filter_source": filters.source,
            "filter_doc_type": filters.doc_type,
            "filter_language": filters.language,
        }
