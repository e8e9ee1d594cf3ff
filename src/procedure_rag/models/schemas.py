"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

Language = Literal["fr", "en", "ko"]


class SearchFiltersModel(BaseModel):
    source: str | None = None
    doc_type: str | None = None


class SearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=2000)
    language: Language | None = None
    count: int = Field(default=8, ge=1, le=20)
    filters: SearchFiltersModel | None = None

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class SearchResultModel(BaseModel):
    id: str
    content: str
    source: str
    doc_type: str
    score: float
    article_number: str | None = None
    code_name: str | None = None
    source_url: str | None = None


class QueryInfoModel(BaseModel):
    original_query: str
    detected_language: str
    pivot_query: str


class QualityModel(BaseModel):
    passed: bool
    confidence: float
    top_score: float
    avg_score: float
    source_count: int
    source_diversity: int
    reason: str | None = None


class SearchResponseModel(BaseModel):
    results: list[SearchResultModel]
    query_info: QueryInfoModel
    total: int
    quality: QualityModel
    disclaimer: str


class ChatMessageModel(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(max_length=2000)


class ChatRequest(BaseModel):
    messages: list[ChatMessageModel] = Field(min_length=1, max_length=50)
    language: Language | None = None

    @field_validator("messages")
    @classmethod
    def last_message_from_user(cls, v: list[ChatMessageModel]) -> list[ChatMessageModel]:
        last = v[-1]
        if last.role != "user" or not last.content.strip():
            raise ValueError("last message must be a non-empty user message")
        return v


class VerifySource(BaseModel):
    content: str
    source: str
    doc_type: str


class VerifyRequest(BaseModel):
    answer: str
    sources: list[VerifySource] = Field(default_factory=list)


class FlaggedClaimModel(BaseModel):
    claim: str
    reason: str
    severity: Literal["high", "medium"]


class VerificationModel(BaseModel):
    status: Literal["verified", "warning", "error"]
    confidence: float
    flagged_claims: list[FlaggedClaimModel]
    checked: bool


class HealthResponse(BaseModel):
    status: str
    store_backend: str
    rerank_mode: str
    embedding_model: str
