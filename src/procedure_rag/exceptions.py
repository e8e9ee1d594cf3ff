"""Custom exception hierarchy for the procedure RAG pipeline."""


class RAGEngineError(Exception):
    """Base exception for all pipeline errors."""


class EmbeddingError(RAGEngineError):
    """Error generating embeddings."""


class RetrievalError(RAGEngineError):
    """Error querying the document store."""


class RerankError(RAGEngineError):
    """Error from a rerank provider."""


class GenerationError(RAGEngineError):
    """Error from the language model."""


class ConfigurationError(RAGEngineError):
    """Error in system configuration."""
