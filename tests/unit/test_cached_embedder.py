"""Tests for CachedEmbedder wrapper and the TTL embedding cache."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from procedure_rag.embeddings.cache import EmbeddingCache
from procedure_rag.embeddings.cached_embedder import CachedEmbedder


class FakeEmbedder:
    """Fake embedder that tracks call counts."""

    def __init__(self) -> None:
        self.embed_calls = 0
        self.embed_batch_calls = 0
        self._dimensions = 3

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        self.embed_calls += 1
        return [1.0, 2.0, 3.0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.embed_batch_calls += 1
        return [[float(i + 1)] * 3 for i in range(len(texts))]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
async def embedder_pair():
    tmp = tempfile.mkdtemp()
    cache = EmbeddingCache(str(Path(tmp) / "cache.db"))
    await cache.initialize()
    delegate = FakeEmbedder()
    embedder = CachedEmbedder(delegate=delegate, cache=cache)
    return embedder, delegate


@pytest.fixture
async def clocked_cache():
    tmp = tempfile.mkdtemp()
    clock = FakeClock()
    cache = EmbeddingCache(str(Path(tmp) / "cache.db"), ttl_s=300, clock=clock)
    await cache.initialize()
    return cache, clock


async def test_embed_caches(embedder_pair):
    embedder, delegate = embedder_pair
    result1 = await embedder.embed("titre de séjour")
    result2 = await embedder.embed("titre de séjour")
    assert result1 == result2
    assert delegate.embed_calls == 1


async def test_cache_key_ignores_case_and_padding(embedder_pair):
    embedder, delegate = embedder_pair
    await embedder.embed("Titre de séjour")
    await embedder.embed("  titre de SÉJOUR ")
    assert delegate.embed_calls == 1


async def test_embed_different_queries(embedder_pair):
    embedder, delegate = embedder_pair
    await embedder.embed("hello")
    await embedder.embed("world")
    assert delegate.embed_calls == 2


async def test_embed_batch_bypasses_cache(embedder_pair):
    embedder, delegate = embedder_pair
    texts = ["a", "b", "c"]
    await embedder.embed_batch(texts)
    await embedder.embed_batch(texts)
    assert delegate.embed_batch_calls == 2


async def test_dimensions_passthrough(embedder_pair):
    embedder, _ = embedder_pair
    assert embedder.dimensions == 3


async def test_entry_expires_after_ttl(clocked_cache):
    cache, clock = clocked_cache
    await cache.put("carte vitale", [0.1, 0.2])
    clock.now += 299
    assert await cache.get("carte vitale") == [0.1, 0.2]
    clock.now += 1
    assert await cache.get("carte vitale") is None


async def test_prune_removes_expired(clocked_cache):
    cache, clock = clocked_cache
    await cache.put("old", [1.0])
    clock.now += 200
    await cache.put("fresh", [2.0])
    clock.now += 150
    assert await cache.prune() == 1
    assert await cache.get("fresh") == [2.0]
