"""Chat streaming and standalone verification endpoints."""

from __future__ import annotations

import json
from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from procedure_rag.api.dependencies import get_chat_pipeline, get_verifier
from procedure_rag.api.rate_limiter import rate_limit
from procedure_rag.generation.prompt_templates import format_sources_for_verification
from procedure_rag.models.domain import ConversationMessage
from procedure_rag.models.schemas import ChatRequest, VerificationModel, VerifyRequest
from procedure_rag.observability.logger import get_logger
from procedure_rag.pipeline.chat_pipeline import ChatPipeline
from procedure_rag.verification.verifier import AnswerVerifier

logger = get_logger("routes_chat")

router = APIRouter()


def format_sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


@router.post("/chat/stream")
async def chat_stream(
    body: ChatRequest,
    request: Request,
    pipeline: ChatPipeline = Depends(get_chat_pipeline),
    _client: str = Depends(rate_limit),
):
    """Stream one chat turn via Server-Sent Events."""
    messages = [ConversationMessage(role=m.role, content=m.content) for m in body.messages]

    async def event_generator():
        stream = pipeline.execute_stream(messages, body.language)
        try:
            async for item in stream:
                if await request.is_disconnected():
                    logger.info("client_disconnected")
                    break
                yield format_sse(item["event"], item["data"])
        except Exception as e:
            logger.error("chat_failed", error=str(e), error_type=type(e).__name__)
            yield format_sse(
                "error", {"message": "An error occurred while generating a response."}
            )
        finally:
            await stream.aclose()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/verify", response_model=VerificationModel)
async def verify(
    body: VerifyRequest,
    verifier: AnswerVerifier = Depends(get_verifier),
    _client: str = Depends(rate_limit),
) -> VerificationModel:
    sources_text = format_sources_for_verification(body.sources)
    result = await verifier.verify(body.answer, sources_text)
    return VerificationModel(**asdict(result))
