"""In-memory BM25 keyword index using rank_bm25."""

from __future__ import annotations

import numpy as np
from rank_bm25 import BM25Okapi

from procedure_rag.keyword_search.tokenizer import tokenize
from procedure_rag.observability.logger import get_logger

logger = get_logger("bm25_index")


class BM25Index:
    def __init__(self) -> None:
        self._bm25: BM25Okapi | None = None
        self._doc_ids: list[str] = []

    def build(self, documents: list[tuple[str, str]]) -> None:
        """Build the index from (id, text) pairs. Replaces any existing index."""
        self._doc_ids = [doc_id for doc_id, _ in documents]
        tokenized_corpus = [tokenize(text) for _, text in documents]
        # BM25Okapi divides by the average document length.
        if tokenized_corpus and any(tokenized_corpus):
            self._bm25 = BM25Okapi(tokenized_corpus)
        else:
            self._bm25 = None
        logger.debug("bm25_built", size=len(self._doc_ids))

    def search(self, query: str, top_k: int = 50) -> list[tuple[str, float]]:
        """Search the BM25 index. Returns (id, score) pairs with a positive score."""
        if self._bm25 is None or not self._doc_ids:
            return []
        tokenized_query = tokenize(query)
        if not tokenized_query:
            return []
        scores = self._bm25.get_scores(tokenized_query)
        top_indices = np.argsort(-scores, kind="stable")[:top_k]
        return [
            (self._doc_ids[i], float(scores[i]))
            for i in top_indices
            if scores[i] > 0
        ]

    @property
    def size(self) -> int:
        return len(self._doc_ids)
