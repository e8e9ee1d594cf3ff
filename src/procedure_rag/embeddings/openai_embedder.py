"""OpenAI embedding provider with batching and rate-limit backoff."""

from __future__ import annotations

import openai
from openai import AsyncOpenAI

from procedure_rag.embeddings.backoff import Sleep, backoff_delay, real_sleep
from procedure_rag.exceptions import EmbeddingError
from procedure_rag.observability.logger import get_logger

logger = get_logger("embeddings")


def is_rate_limited(error: Exception) -> bool:
    if isinstance(error, openai.RateLimitError):
        return True
    return getattr(error, "status_code", None) == 429


class OpenAIEmbedder:
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-large",
        dimensions: int = 1024,
        batch_size: int = 20,
        batch_delay_s: float = 3.0,
        retry_base_delay_s: float = 15.0,
        max_retries: int = 5,
        timeout_s: float = 30.0,
        client: AsyncOpenAI | None = None,
        sleep: Sleep = real_sleep,
    ) -> None:
        # SDK retries are disabled so the backoff policy below is the only one in play.
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)
        self._model = model
        self._dimensions = dimensions
        self._batch_size = batch_size
        self._batch_delay_s = batch_delay_s
        self._retry_base_delay_s = retry_base_delay_s
        self._max_retries = max_retries
        self._sleep = sleep

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        embeddings = await self._create_with_retry([text])
        return embeddings[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            all_embeddings.extend(await self._create_with_retry(batch))
            if i + self._batch_size < len(texts):
                await self._sleep(self._batch_delay_s)
        logger.info("embedded_batch", count=len(texts), model=self._model)
        return all_embeddings

    async def _create_with_retry(self, batch: list[str]) -> list[list[float]]:
        attempt = 0
        while True:
            try:
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                    dimensions=self._dimensions,
                )
                return [item.embedding for item in response.data]
            except Exception as e:
                if not is_rate_limited(e):
                    raise EmbeddingError(f"Failed to embed {len(batch)} texts: {e}") from e
                if attempt >= self._max_retries:
                    raise EmbeddingError(
                        f"Rate limited after {self._max_retries} retries embedding {len(batch)} texts"
                    ) from e
                delay = backoff_delay(attempt, self._retry_base_delay_s)
                logger.warning(
                    "embedding_rate_limited",
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    wait_s=delay,
                )
                await self._sleep(delay)
                attempt += 1
