"""SQLite-backed document store with in-process hybrid search.

Keyword ranks come from BM25 over the filtered rows, semantic ranks from
numpy cosine similarity against stored embeddings, and the two are fused
with RRF. Suited to local development and tests; production deployments use
the PostgREST store.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace

import aiosqlite
import numpy as np

from procedure_rag.keyword_search.bm25_index import BM25Index
from procedure_rag.models.domain import DocumentChunk, RankedCandidate, SearchFilters
from procedure_rag.observability.logger import get_logger
from procedure_rag.retrieval.rrf import reciprocal_rank_fusion
from procedure_rag.storage.migrations import initialize_chunk_db

logger = get_logger("sqlite_store")


def cosine_similarities(query: list[float], matrix: np.ndarray) -> np.ndarray:
    q = np.asarray(query, dtype=np.float32)
    norms = np.linalg.norm(matrix, axis=1) * (np.linalg.norm(q) or 1.0)
    norms[norms == 0] = 1.0
    return (matrix @ q) / norms


class SQLiteDocumentStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_chunk_db(self._db_path)

    async def upsert_chunks(self, chunks: list[DocumentChunk]) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.executemany(
                "INSERT OR REPLACE INTO document_chunks "
                "(id, content, source, doc_type, language, article_number, code_name, "
                "source_url, metadata, embedding) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        c.id,
                        c.content,
                        c.source,
                        c.doc_type,
                        c.language,
                        c.article_number,
                        c.code_name,
                        c.source_url,
                        json.dumps(c.metadata or {}),
                        json.dumps(c.embedding) if c.embedding is not None else None,
                    )
                    for c in chunks
                ],
            )
            await db.commit()
        logger.info("chunks_upserted", count=len(chunks))

    async def count_chunks(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COUNT(*) FROM document_chunks") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def hybrid_search(
        self,
        query_text: str,
        query_embedding: list[float],
        match_count: int,
        rrf_k: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]:
        chunks = await self._load(filters)
        if not chunks:
            return []
        per_list = match_count * 2

        keyword_ids = await asyncio.to_thread(self._keyword_ranking, chunks, query_text, per_list)
        semantic = await asyncio.to_thread(self._semantic_ranking, chunks, query_embedding, per_list)

        by_id = {c.id: c for c in chunks}
        keyword_list = [
            RankedCandidate.from_chunk(by_id[cid], keyword_rank=rank)
            for rank, cid in enumerate(keyword_ids, start=1)
        ]
        semantic_list = [
            RankedCandidate.from_chunk(by_id[cid], semantic_rank=rank, similarity=sim)
            for rank, (cid, sim) in enumerate(semantic, start=1)
        ]

        keyword_ranks = {c.id: c.keyword_rank for c in keyword_list}
        semantic_ranks = {c.id: c.semantic_rank for c in semantic_list}
        fused = reciprocal_rank_fusion([semantic_list, keyword_list], k=rrf_k, limit=match_count)
        return [
            replace(
                c,
                semantic_rank=semantic_ranks.get(c.id),
                keyword_rank=keyword_ranks.get(c.id),
                similarity=None,
            )
            for c in fused
        ]

    async def vector_search(
        self,
        query_embedding: list[float],
        match_count: int,
        filters: SearchFilters,
    ) -> list[RankedCandidate]:
        chunks = await self._load(filters)
        if not chunks:
            return []
        by_id = {c.id: c for c in chunks}
        semantic = await asyncio.to_thread(
            self._semantic_ranking, chunks, query_embedding, match_count
        )
        return [
            RankedCandidate.from_chunk(by_id[cid], semantic_rank=rank, similarity=sim)
            for rank, (cid, sim) in enumerate(semantic, start=1)
        ]

    async def fetch_by_article_numbers(self, article_numbers: list[str]) -> list[RankedCandidate]:
        if not article_numbers:
            return []
        placeholders = ",".join("?" for _ in article_numbers)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM document_chunks WHERE article_number IN ({placeholders})",
                article_numbers,
            ) as cursor:
                rows = await cursor.fetchall()
                return [RankedCandidate.from_chunk(self._row_to_chunk(row)) for row in rows]

    async def _load(self, filters: SearchFilters) -> list[DocumentChunk]:
        query = "SELECT * FROM document_chunks WHERE language = ?"
        params: list = [filters.language]
        if filters.source:
            query += " AND source = ?"
            params.append(filters.source)
        if filters.doc_type:
            query += " AND doc_type = ?"
            params.append(filters.doc_type)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query + " ORDER BY id", params) as cursor:
                rows = await cursor.fetchall()
                return [self._row_to_chunk(row) for row in rows]

    @staticmethod
    def _keyword_ranking(chunks: list[DocumentChunk], query_text: str, top_k: int) -> list[str]:
        index = BM25Index()
        index.build([(c.id, c.content) for c in chunks])
        return [cid for cid, _ in index.search(query_text, top_k)]

    @staticmethod
    def _semantic_ranking(
        chunks: list[DocumentChunk], query_embedding: list[float], top_k: int
    ) -> list[tuple[str, float]]:
        embedded = [c for c in chunks if c.embedding]
        if not embedded:
            return []
        matrix = np.asarray([c.embedding for c in embedded], dtype=np.float32)
        sims = cosine_similarities(query_embedding, matrix)
        order = np.argsort(-sims, kind="stable")[:top_k]
        return [(embedded[i].id, float(sims[i])) for i in order]

    @staticmethod
    def _row_to_chunk(row: aiosqlite.Row) -> DocumentChunk:
        return DocumentChunk(
            id=row["id"],
            content=row["content"],
            source=row["source"],
            doc_type=row["doc_type"],
            language=row["language"],
            article_number=row["article_number"],
            code_name=row["code_name"],
            source_url=row["source_url"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            embedding=json.loads(row["embedding"]) if row["embedding"] else None,
        )
