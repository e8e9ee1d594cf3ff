"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Keys
    openai_api_key: str = ""
    google_api_key: str = ""
    cohere_api_key: str = ""

    # Embedding
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: int = 1024
    embedding_batch_size: int = 20
    embedding_batch_delay_s: float = 3.0
    embedding_retry_base_delay_s: float = 15.0
    embedding_max_retries: int = 5
    embedding_timeout_s: float = 30.0
    embedding_cache_db_path: str = "data/embedding_cache.db"
    embedding_cache_ttl_s: int = 300

    # LLM / Gemini
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.1
    llm_timeout_s: float = 30.0
    max_completion_tokens: int = 4096

    # Query normalization
    pivot_language: str = "fr"
    reformulation_history_messages: int = 6
    reformulation_min_length_ratio: float = 0.5

    # Retrieval
    default_result_count: int = 8
    max_candidates: int = 20
    rrf_k: int = 60
    keyword_expansions: int = 2
    cross_reference_limit: int = 3

    # Reranking
    rerank_provider: Literal["cohere", "cross_encoder", "none"] = "cohere"
    cohere_rerank_model: str = "rerank-v3.5"
    rerank_max_tokens_per_doc: int = 4096
    rerank_timeout_s: float = 15.0
    cross_encoder_model: str = "cross-encoder/mmarco-mMiniLMv2-L12-H384-v1"

    # Quality gate
    gate_min_top_score: float = 0.40
    gate_min_avg_score: float = 0.20
    gate_min_sources: int = 1

    # Conversation budget
    max_input_tokens: int = 80_000
    keep_recent_turns: int = 4
    rag_context_budget_ratio: float = 0.75

    # Verification
    verification_max_source_chars: int = 6000
    verification_max_tokens: int = 2048

    # Document store
    store_backend: Literal["postgrest", "sqlite"] = "sqlite"
    postgrest_url: str = ""
    postgrest_api_key: str = ""
    store_timeout_s: float = 10.0
    sqlite_store_db_path: str = "data/chunks.db"
    sqlite_trace_db_path: str = "data/traces.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_json: bool = True
    rate_limit_requests_per_minute: int = 10

    model_config = {"env_file": ".env", "env_prefix": "RAG_"}
