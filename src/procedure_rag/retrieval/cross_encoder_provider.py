"""Local cross-encoder rerank provider using sentence-transformers."""

from __future__ import annotations

import asyncio

import numpy as np
from sentence_transformers import CrossEncoder

from procedure_rag.exceptions import RerankError


def sigmoid(logits) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.asarray(logits, dtype=np.float64)))


class CrossEncoderRerankProvider:
    name = "cross_encoder"

    def __init__(
        self,
        model_name: str = "cross-encoder/mmarco-mMiniLMv2-L12-H384-v1",
        timeout_s: float = 15.0,
        model: CrossEncoder | None = None,
    ) -> None:
        self._model = model or CrossEncoder(model_name)
        self._timeout_s = timeout_s

    async def rerank(
        self,
        query: str,
        documents: list[str],
        top_n: int,
    ) -> list[tuple[int, float]]:
        if not documents:
            return []
        pairs = [(query, doc) for doc in documents]
        try:
            # CrossEncoder.predict is synchronous, run in thread pool
            logits = await asyncio.wait_for(
                asyncio.to_thread(self._model.predict, pairs),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise RerankError(f"Cross-encoder timed out after {self._timeout_s}s") from e

        scores = sigmoid(logits)
        order = np.argsort(-scores, kind="stable")[:top_n]
        return [(int(i), float(scores[i])) for i in order]
