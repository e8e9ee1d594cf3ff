"""Chat turn orchestrator with a quality gate and pre-stream verification.

The first draft is generated silently and verified before anything reaches
the client. A draft with high-severity unsupported claims is regenerated
once (streamed) with those claims listed, then verified again.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from dataclasses import asdict

from procedure_rag.config.settings import Settings
from procedure_rag.conversation.compactor import ConversationCompactor
from procedure_rag.conversation.token_budget import estimate_tokens, trim_rag_context
from procedure_rag.generation.answer_generator import (
    AnswerGenerator,
    build_system_prompt,
    cited_source_numbers,
    correction_messages,
)
from procedure_rag.generation.prompt_templates import (
    INSUFFICIENT_SOURCES_MESSAGES,
    format_sources_for_verification,
)
from procedure_rag.models.domain import ConversationMessage
from procedure_rag.observability.logger import get_logger
from procedure_rag.observability.metrics import log_quality_metrics, log_verification_metrics
from procedure_rag.observability.tracing import TraceContext
from procedure_rag.pipeline.search_pipeline import RagSearchPipeline
from procedure_rag.query.language import detect_language
from procedure_rag.query.normalizer import QueryNormalizer
from procedure_rag.scoring.quality_gate import QualityGate
from procedure_rag.verification.verifier import AnswerVerifier

logger = get_logger("chat_pipeline")


def event(name: str, data: dict) -> dict:
    return {"event": name, "data": data}


def progress(stage: str) -> dict:
    return event("progress", {"stage": stage})


class ChatPipeline:
    def __init__(
        self,
        normalizer: QueryNormalizer,
        search_pipeline: RagSearchPipeline,
        quality_gate: QualityGate,
        compactor: ConversationCompactor,
        generator: AnswerGenerator,
        verifier: AnswerVerifier,
        settings: Settings,
    ) -> None:
        self._normalizer = normalizer
        self._search = search_pipeline
        self._gate = quality_gate
        self._compactor = compactor
        self._generator = generator
        self._verifier = verifier
        self._settings = settings

    async def execute_stream(
        self,
        messages: Sequence[ConversationMessage],
        language: str | None = None,
    ) -> AsyncGenerator[dict, None]:
        """Run one chat turn. Yields {"event": ..., "data": {...}} dicts:
        - progress: {"stage": "searching_rag" | "thinking" | "verifying" | "regenerating" | "generating"}
        - sources: {"sources": [...]}
        - quality: quality assessment
        - token: {"text": "<chunk>"}
        - verification: verification result
        - done: {"trace_id": "..."}
        """
        trace = TraceContext(kind="chat")
        latest = messages[-1].content
        language = language or detect_language(latest)

        # STEP 1: Standalone query + search
        yield progress("searching_rag")
        with trace.span("reformulation"):
            search_query = await self._normalizer.reformulate_query(messages)
        response = await self._search.search(
            search_query,
            language=language,
            count=self._settings.default_result_count,
            trace=trace,
        )

        # STEP 2: Fit sources into the system prompt budget
        max_system_tokens = int(
            self._settings.max_input_tokens * self._settings.rag_context_budget_ratio
        )
        with trace.span("context_trim") as span:
            sources = trim_rag_context(
                response.results,
                lambda items: build_system_prompt(items, language),
                max_system_tokens,
            )
            span.metadata["kept"] = len(sources)

        # STEP 3: Quality gate
        quality = self._gate.assess(sources)
        log_quality_metrics(trace.trace_id, quality)

        if not quality.passed:
            message = INSUFFICIENT_SOURCES_MESSAGES.get(language, INSUFFICIENT_SOURCES_MESSAGES["en"])
            yield event("sources", {"sources": []})
            yield progress("generating")
            yield event("token", {"text": message})
            yield event("quality", asdict(quality))
            logger.info("chat_blocked", trace_id=trace.trace_id, reason=quality.reason)
            await self._search.save_trace(
                trace.to_trace(query=latest, detected_language=language, quality=quality)
            )
            yield event("done", {"trace_id": trace.trace_id})
            return

        yield event("quality", asdict(quality))
        yield event("sources", {"sources": [asdict(s) for s in sources]})

        # STEP 4: Prompt + history compaction + silent first pass
        system_prompt = build_system_prompt(sources, language)
        with trace.span("compaction"):
            history = await self._compactor.compact(
                messages, estimate_tokens([], system_prompt)
            )

        yield progress("thinking")
        with trace.span("generation"):
            answer = await self._generator.generate(history, system_prompt)

        # STEP 5: Verify before streaming
        yield progress("verifying")
        sources_text = format_sources_for_verification(sources)
        with trace.span("verification"):
            verification = await self._verifier.verify(answer, sources_text)

        regenerated = verification.status == "error"
        if regenerated:
            logger.info(
                "regenerating_answer",
                trace_id=trace.trace_id,
                flagged=len(verification.flagged_claims),
            )
            yield progress("regenerating")
            correction = correction_messages(history, answer, verification.flagged_claims)
            yield progress("generating")
            parts: list[str] = []
            with trace.span("regeneration"):
                async for chunk in self._generator.generate_stream(correction, system_prompt):
                    parts.append(chunk)
                    yield event("token", {"text": chunk})
            answer = "".join(parts)
            with trace.span("re_verification"):
                verification = await self._verifier.verify(answer, sources_text)
        else:
            yield progress("generating")
            yield event("token", {"text": answer})

        # STEP 6: Report
        log_verification_metrics(trace.trace_id, verification, regenerated)
        yield event("verification", asdict(verification))

        logger.info(
            "chat_complete",
            trace_id=trace.trace_id,
            language=language,
            sources=len(sources),
            cited=cited_source_numbers(answer, len(sources)),
            answer_len=len(answer),
            verification=verification.status,
            timings=trace.timings(),
            latency_ms=round(trace.elapsed_ms, 2),
        )
        await self._search.save_trace(
            trace.to_trace(
                query=latest,
                detected_language=language,
                quality=quality,
                verification=verification,
            )
        )
        yield event("done", {"trace_id": trace.trace_id})
