"""Tests for reranking and its degraded fallback."""

from __future__ import annotations

import asyncio
import time
from types import SimpleNamespace

import numpy as np
import pytest
from conftest import make_candidate

from procedure_rag.exceptions import RerankError
from procedure_rag.retrieval.cohere_provider import CohereRerankProvider
from procedure_rag.retrieval.cross_encoder_provider import CrossEncoderRerankProvider, sigmoid
from procedure_rag.retrieval.reranker import Reranker, positional_scores


class FakeProvider:
    name = "fake"

    def __init__(self, ranked=None, error: Exception | None = None) -> None:
        self.ranked = ranked or []
        self.error = error
        self.calls: list[dict] = []

    async def rerank(self, query, documents, top_n):
        self.calls.append({"query": query, "documents": documents, "top_n": top_n})
        if self.error:
            raise self.error
        return self.ranked


class FakeCrossEncoder:
    def __init__(self, logits, delay_s: float = 0.0) -> None:
        self.logits = np.asarray(logits, dtype=np.float32)
        self.delay_s = delay_s
        self.pairs = None

    def predict(self, pairs):
        self.pairs = pairs
        if self.delay_s:
            time.sleep(self.delay_s)
        return self.logits


def _candidates(n: int = 5):
    return [make_candidate(f"c{i}", rrf_score=0.01 * (n - i)) for i in range(n)]


async def test_degraded_mode_scores_by_position():
    reranker = Reranker()
    results = await reranker.rerank("titre de séjour", _candidates(5), top_n=5)
    assert [c.id for c in results] == ["c0", "c1", "c2", "c3", "c4"]
    assert [c.rrf_score for c in results] == pytest.approx([1.0, 0.8, 0.6, 0.4, 0.2])
    assert reranker.mode == "degraded"


def test_positional_scores_truncates_after_scoring():
    results = positional_scores(_candidates(5), top_n=2)
    assert [c.rrf_score for c in results] == pytest.approx([1.0, 0.8])


async def test_empty_candidates():
    assert await Reranker(FakeProvider()).rerank("q", [], top_n=5) == []


async def test_provider_order_and_scores_applied():
    provider = FakeProvider(ranked=[(2, 0.91), (0, 0.55), (1, 0.12)])
    reranker = Reranker(provider)
    results = await reranker.rerank("renouveler titre de séjour", _candidates(3), top_n=2)
    assert [(c.id, c.rrf_score) for c in results] == [("c2", 0.91), ("c0", 0.55)]
    assert provider.calls[0]["documents"] == [c.content for c in _candidates(3)]
    assert reranker.mode == "fake"


async def test_provider_out_of_range_indices_are_ignored():
    provider = FakeProvider(ranked=[(7, 0.99), (1, 0.5)])
    results = await Reranker(provider).rerank("q", _candidates(2), top_n=5)
    assert [c.id for c in results] == ["c1"]


async def test_provider_failure_degrades():
    provider = FakeProvider(error=RerankError("503"))
    results = await Reranker(provider).rerank("q", _candidates(5), top_n=5)
    assert [c.id for c in results] == ["c0", "c1", "c2", "c3", "c4"]
    assert [c.rrf_score for c in results] == pytest.approx([1.0, 0.8, 0.6, 0.4, 0.2])


def test_sigmoid():
    assert sigmoid(np.array([0.0]))[0] == pytest.approx(0.5)
    assert sigmoid(np.array([10.0]))[0] > 0.99


async def test_cross_encoder_provider_ranks_by_probability():
    model = FakeCrossEncoder([-1.0, 3.0, 0.0])
    provider = CrossEncoderRerankProvider("unused", timeout_s=5.0, model=model)
    ranked = await provider.rerank("séjour", ["a", "b", "c"], top_n=2)
    assert [i for i, _ in ranked] == [1, 2]
    assert ranked[1][1] == pytest.approx(0.5)
    assert model.pairs == [("séjour", "a"), ("séjour", "b"), ("séjour", "c")]


async def test_cross_encoder_timeout_raises_rerank_error():
    model = FakeCrossEncoder([0.0], delay_s=0.2)
    provider = CrossEncoderRerankProvider("unused", timeout_s=0.01, model=model)
    with pytest.raises(RerankError):
        await provider.rerank("q", ["a"], top_n=1)
    await asyncio.sleep(0.25)


class FakeCohereClient:
    def __init__(self, results=None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.kwargs = None

    async def rerank(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(results=self.results)


async def test_cohere_provider_maps_results():
    client = FakeCohereClient(
        [SimpleNamespace(index=1, relevance_score=0.8), SimpleNamespace(index=0, relevance_score=0.3)]
    )
    provider = CohereRerankProvider("key", model="rerank-v3.5", client=client)
    assert await provider.rerank("séjour", ["a", "b"], top_n=2) == [(1, 0.8), (0, 0.3)]
    assert client.kwargs["max_tokens_per_doc"] == 4096
    assert client.kwargs["top_n"] == 2


async def test_cohere_provider_wraps_errors():
    provider = CohereRerankProvider("key", client=FakeCohereClient(error=TimeoutError()))
    with pytest.raises(RerankError):
        await provider.rerank("q", ["a"], top_n=1)
