"""Shared test fixtures and fakes."""

from __future__ import annotations

import hashlib
import tempfile
from pathlib import Path

import pytest

from procedure_rag.config.settings import Settings
from procedure_rag.models.domain import RankedCandidate, SearchResultItem


class ScriptedLLM:
    """LLM fake that replays queued responses and records every call.

    Each queued item is a string, an exception to raise, or a callable
    ``(prompt, system) -> str``. Once the queue is empty ``default`` answers,
    called the same way when it is callable.
    """

    def __init__(self, responses=None, default: str = "", stream_chunks=None) -> None:
        self.responses = list(responses or [])
        self.default = default
        self.stream_chunks = list(stream_chunks or [])
        self.calls: list[dict] = []
        self.stream_calls: list[dict] = []

    async def generate(
        self,
        prompt,
        system=None,
        temperature=0.1,
        max_tokens=4096,
        json_output=False,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "system": system,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "json_output": json_output,
            }
        )
        if not self.responses:
            if callable(self.default):
                return self.default(prompt, system)
            return self.default
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(prompt, system)
        return item

    async def generate_stream(self, prompt, system=None, temperature=0.1, max_tokens=4096):
        self.stream_calls.append({"prompt": prompt, "system": system})
        for chunk in self.stream_chunks:
            yield chunk


def route_by_system(routes: dict, fallback: str = ""):
    """Responder that answers by system prompt, for pipelines with concurrent LLM calls."""

    def respond(prompt, system):
        answer = routes.get(system, fallback)
        return answer(prompt, system) if callable(answer) else answer

    return respond


class FakeEmbedder:
    """Deterministic embedder: a vector derived from the text hash."""

    def __init__(self, dimensions: int = 8) -> None:
        self._dimensions = dimensions
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def vector(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 for b in digest[: self._dimensions]]

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        return self.vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self.vector(t) for t in texts]


class InMemoryStore:
    """DocumentStore fake returning canned rankings and recording calls."""

    def __init__(self, hybrid=None, vector=None, articles=None, error: Exception | None = None):
        self.hybrid = list(hybrid or [])
        self.vector = list(vector or [])
        self.articles: dict[str, RankedCandidate] = dict(articles or {})
        self.error = error
        self.hybrid_calls: list[dict] = []
        self.vector_calls: list[dict] = []
        self.article_calls: list[list[str]] = []

    async def hybrid_search(self, query_text, query_embedding, match_count, rrf_k, filters):
        self.hybrid_calls.append(
            {
                "query_text": query_text,
                "query_embedding": query_embedding,
                "match_count": match_count,
                "rrf_k": rrf_k,
                "filters": filters,
            }
        )
        if self.error:
            raise self.error
        return [RankedCandidate(**c.__dict__) for c in self.hybrid[:match_count]]

    async def vector_search(self, query_embedding, match_count, filters):
        self.vector_calls.append(
            {"query_embedding": query_embedding, "match_count": match_count, "filters": filters}
        )
        if self.error:
            raise self.error
        return [RankedCandidate(**c.__dict__) for c in self.vector[:match_count]]

    async def fetch_by_article_numbers(self, article_numbers):
        self.article_calls.append(list(article_numbers))
        if self.error:
            raise self.error
        return [
            RankedCandidate(**self.articles[n].__dict__)
            for n in article_numbers
            if n in self.articles
        ]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_candidate(
    cid: str,
    content: str | None = None,
    doc_type: str = "procedure",
    article_number: str | None = None,
    cross_references: list | None = None,
    **fields,
) -> RankedCandidate:
    metadata = {"cross_references": cross_references} if cross_references is not None else {}
    return RankedCandidate(
        id=cid,
        content=content or f"Contenu du document {cid}",
        source=fields.pop("source", "service-public"),
        doc_type=doc_type,
        article_number=article_number,
        metadata=metadata,
        **fields,
    )


def make_result(
    cid: str,
    score: float,
    doc_type: str = "procedure",
    content: str | None = None,
) -> SearchResultItem:
    return SearchResultItem(
        id=cid,
        content=content or f"Contenu du document {cid}",
        source="service-public",
        doc_type=doc_type,
        score=score,
    )


@pytest.fixture
def settings():
    """Test settings with temp paths and no provider keys."""
    tmp = tempfile.mkdtemp()
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        google_api_key="test-key",
        cohere_api_key="",
        rerank_provider="none",
        sqlite_store_db_path=str(Path(tmp) / "chunks.db"),
        sqlite_trace_db_path=str(Path(tmp) / "traces.db"),
        embedding_cache_db_path=str(Path(tmp) / "embedding_cache.db"),
        log_json=False,
    )


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def tmp_dir():
    """Create a temporary directory."""
    return tempfile.mkdtemp()
