"""Caching wrapper around an Embedder for repeated query embeddings."""

from __future__ import annotations

from procedure_rag.embeddings.cache import EmbeddingCache
from procedure_rag.observability.logger import get_logger

logger = get_logger("cached_embedder")


class CachedEmbedder:
    """Wraps any Embedder; single-text embeds go through the cache, batches do not."""

    def __init__(self, delegate, cache: EmbeddingCache) -> None:
        self._delegate = delegate
        self._cache = cache

    @property
    def dimensions(self) -> int:
        return self._delegate.dimensions

    async def embed(self, text: str) -> list[float]:
        cached = await self._cache.get(text)
        if cached is not None:
            logger.debug("embed_cache_hit", text_len=len(text))
            return cached

        embedding = await self._delegate.embed(text)
        await self._cache.put(text, embedding)
        logger.debug("embed_cache_miss", text_len=len(text))
        return embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return await self._delegate.embed_batch(texts)
