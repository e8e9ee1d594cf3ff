"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import Request

from procedure_rag.config.settings import Settings
from procedure_rag.pipeline.chat_pipeline import ChatPipeline
from procedure_rag.pipeline.search_pipeline import RagSearchPipeline
from procedure_rag.scoring.quality_gate import QualityGate
from procedure_rag.services import Services
from procedure_rag.verification.verifier import AnswerVerifier


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_search_pipeline(request: Request) -> RagSearchPipeline:
    return request.app.state.services.search_pipeline


def get_chat_pipeline(request: Request) -> ChatPipeline:
    return request.app.state.services.chat_pipeline


def get_quality_gate(request: Request) -> QualityGate:
    return request.app.state.services.quality_gate


def get_verifier(request: Request) -> AnswerVerifier:
    return request.app.state.services.verifier
