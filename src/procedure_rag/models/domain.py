"""Core domain objects used throughout the system."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Role = Literal["user", "assistant"]
VerificationStatus = Literal["verified", "warning", "error"]
Severity = Literal["high", "medium"]


@dataclass(frozen=True)
class DocumentChunk:
    id: str
    content: str
    source: str
    doc_type: str
    language: str = "fr"
    article_number: str | None = None
    code_name: str | None = None
    source_url: str | None = None
    metadata: dict | None = None
    embedding: list[float] | None = None


@dataclass(frozen=True)
class SearchFilters:
    source: str | None = None
    doc_type: str | None = None
    language: str = "fr"


@dataclass
class SearchResultItem:
    id: str
    content: str
    source: str
    doc_type: str
    score: float
    article_number: str | None = None
    code_name: str | None = None
    source_url: str | None = None


@dataclass
class RankedCandidate:
    """A store row on its way through fusion, reranking and expansion.

    ``None`` rank fields mean the row was absent from that ranking, not that
    it ranked last. ``similarity`` is only set by vector-only searches.
    """

    id: str
    content: str
    source: str
    doc_type: str
    article_number: str | None = None
    code_name: str | None = None
    source_url: str | None = None
    metadata: dict | None = None
    semantic_rank: int | None = None
    keyword_rank: int | None = None
    similarity: float | None = None
    rrf_score: float = 0.0

    @property
    def match_kind(self) -> str:
        if self.semantic_rank is not None and self.keyword_rank is not None:
            return "fused"
        if self.semantic_rank is not None:
            return "semantic"
        if self.keyword_rank is not None:
            return "keyword"
        return "unranked"

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk, **ranks) -> RankedCandidate:
        return cls(
            id=chunk.id,
            content=chunk.content,
            source=chunk.source,
            doc_type=chunk.doc_type,
            article_number=chunk.article_number,
            code_name=chunk.code_name,
            source_url=chunk.source_url,
            metadata=chunk.metadata,
            **ranks,
        )

    def to_result_item(self) -> SearchResultItem:
        return SearchResultItem(
            id=self.id,
            content=self.content,
            source=self.source,
            doc_type=self.doc_type,
            score=self.rrf_score,
            article_number=self.article_number or None,
            code_name=self.code_name or None,
            source_url=self.source_url or None,
        )


@dataclass
class QueryInfo:
    original_query: str
    detected_language: str
    pivot_query: str


@dataclass
class SearchResponse:
    results: list[SearchResultItem]
    query_info: QueryInfo
    total: int


@dataclass(frozen=True)
class ConversationMessage:
    role: Role
    content: str


@dataclass
class QualityAssessment:
    passed: bool
    confidence: float
    top_score: float
    avg_score: float
    source_count: int
    source_diversity: int
    reason: str | None = None


@dataclass
class FlaggedClaim:
    claim: str
    reason: str
    severity: Severity


@dataclass
class VerificationResult:
    status: VerificationStatus
    confidence: float
    flagged_claims: list[FlaggedClaim] = field(default_factory=list)
    checked: bool = True


@dataclass
class Trace:
    trace_id: str
    kind: str  # "search", "chat"
    query: str
    timestamp: datetime
    latency_ms: float
    detected_language: str | None = None
    quality_passed: bool | None = None
    quality_confidence: float | None = None
    verification_status: str | None = None
    verification_confidence: float | None = None
    spans: list[dict] = field(default_factory=list)
