"""Construction of long-lived provider clients and pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from procedure_rag.config.settings import Settings
from procedure_rag.conversation.compactor import ConversationCompactor
from procedure_rag.embeddings.cache import EmbeddingCache
from procedure_rag.embeddings.cached_embedder import CachedEmbedder
from procedure_rag.embeddings.openai_embedder import OpenAIEmbedder
from procedure_rag.exceptions import ConfigurationError
from procedure_rag.generation.answer_generator import AnswerGenerator
from procedure_rag.generation.gemini_provider import GeminiProvider
from procedure_rag.observability.logger import get_logger
from procedure_rag.pipeline.chat_pipeline import ChatPipeline
from procedure_rag.pipeline.search_pipeline import RagSearchPipeline
from procedure_rag.query.normalizer import QueryNormalizer
from procedure_rag.retrieval.cross_references import CrossReferenceExpander
from procedure_rag.retrieval.hybrid_retriever import BilingualRetriever
from procedure_rag.retrieval.reranker import Reranker
from procedure_rag.scoring.quality_gate import QualityGate
from procedure_rag.storage.postgrest_store import PostgrestDocumentStore
from procedure_rag.storage.sqlite_store import SQLiteDocumentStore
from procedure_rag.storage.sqlite_trace_store import SQLiteTraceStore
from procedure_rag.verification.verifier import AnswerVerifier

logger = get_logger("services")


@dataclass
class Services:
    settings: Settings
    store: PostgrestDocumentStore | SQLiteDocumentStore
    trace_store: SQLiteTraceStore
    reranker: Reranker
    quality_gate: QualityGate
    search_pipeline: RagSearchPipeline
    chat_pipeline: ChatPipeline
    verifier: AnswerVerifier

    async def aclose(self) -> None:
        if isinstance(self.store, PostgrestDocumentStore):
            await self.store.aclose()


def build_rerank_provider(settings: Settings):
    if settings.rerank_provider == "cohere":
        if not settings.cohere_api_key:
            logger.warning("rerank_degraded_no_key", provider="cohere")
            return None
        from procedure_rag.retrieval.cohere_provider import CohereRerankProvider

        return CohereRerankProvider(
            api_key=settings.cohere_api_key,
            model=settings.cohere_rerank_model,
            max_tokens_per_doc=settings.rerank_max_tokens_per_doc,
            timeout_s=settings.rerank_timeout_s,
        )
    if settings.rerank_provider == "cross_encoder":
        # Lazy import: loading sentence-transformers pulls in torch.
        from procedure_rag.retrieval.cross_encoder_provider import CrossEncoderRerankProvider

        return CrossEncoderRerankProvider(
            model_name=settings.cross_encoder_model,
            timeout_s=settings.rerank_timeout_s,
        )
    return None


async def build_store(settings: Settings):
    if settings.store_backend == "postgrest":
        if not settings.postgrest_url:
            raise ConfigurationError("RAG_POSTGREST_URL is required for the postgrest backend")
        return PostgrestDocumentStore(
            base_url=settings.postgrest_url,
            api_key=settings.postgrest_api_key,
            timeout_s=settings.store_timeout_s,
        )
    Path(settings.sqlite_store_db_path).parent.mkdir(parents=True, exist_ok=True)
    store = SQLiteDocumentStore(settings.sqlite_store_db_path)
    await store.initialize()
    return store


async def build_services(settings: Settings) -> Services:
    for path in [settings.sqlite_trace_db_path, settings.embedding_cache_db_path]:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    store = await build_store(settings)
    trace_store = SQLiteTraceStore(settings.sqlite_trace_db_path)
    await trace_store.initialize()

    # Embedding (with query cache)
    raw_embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        batch_size=settings.embedding_batch_size,
        batch_delay_s=settings.embedding_batch_delay_s,
        retry_base_delay_s=settings.embedding_retry_base_delay_s,
        max_retries=settings.embedding_max_retries,
        timeout_s=settings.embedding_timeout_s,
    )
    embedding_cache = EmbeddingCache(
        settings.embedding_cache_db_path, ttl_s=settings.embedding_cache_ttl_s
    )
    await embedding_cache.initialize()
    embedder = CachedEmbedder(delegate=raw_embedder, cache=embedding_cache)

    # LLM
    llm = GeminiProvider(
        api_key=settings.google_api_key,
        model=settings.gemini_model,
        timeout_s=settings.llm_timeout_s,
    )

    normalizer = QueryNormalizer(llm, settings)
    reranker = Reranker(build_rerank_provider(settings))
    verifier = AnswerVerifier(llm, settings)
    quality_gate = QualityGate(settings)

    search_pipeline = RagSearchPipeline(
        normalizer=normalizer,
        embedder=embedder,
        retriever=BilingualRetriever(
            store,
            rrf_k=settings.rrf_k,
            max_candidates=settings.max_candidates,
            keyword_expansions=settings.keyword_expansions,
        ),
        reranker=reranker,
        cross_references=CrossReferenceExpander(store, limit=settings.cross_reference_limit),
        settings=settings,
        trace_store=trace_store,
    )
    chat_pipeline = ChatPipeline(
        normalizer=normalizer,
        search_pipeline=search_pipeline,
        quality_gate=quality_gate,
        compactor=ConversationCompactor(llm, settings),
        generator=AnswerGenerator(
            llm,
            temperature=settings.gemini_temperature,
            max_tokens=settings.max_completion_tokens,
        ),
        verifier=verifier,
        settings=settings,
    )

    logger.info(
        "services_built",
        store_backend=settings.store_backend,
        rerank_mode=reranker.mode,
        embedding_model=settings.embedding_model,
    )
    return Services(
        settings=settings,
        store=store,
        trace_store=trace_store,
        reranker=reranker,
        quality_gate=quality_gate,
        search_pipeline=search_pipeline,
        chat_pipeline=chat_pipeline,
        verifier=verifier,
    )
