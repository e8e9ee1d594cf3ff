"""Conversation history compaction under a token budget.

Older turns are replaced by an LLM summary while the most recent turns are
kept verbatim. The returned list is always a new list; inputs are never
mutated.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from procedure_rag.config.constants import (
    SUMMARY_ACKNOWLEDGEMENT,
    SUMMARY_FALLBACK_CHARS,
    SUMMARY_MAX_TOKENS,
    SUMMARY_MESSAGE_CHARS,
    SUMMARY_PREFIX,
)
from procedure_rag.config.settings import Settings
from procedure_rag.conversation.token_budget import estimate_tokens
from procedure_rag.generation.prompt_templates import SUMMARIZE_SYSTEM, format_history_block
from procedure_rag.models.domain import ConversationMessage
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.llm import LLMProvider

logger = get_logger("compactor")

TokenEstimator = Callable[[Sequence[ConversationMessage]], int]


class ConversationCompactor:
    def __init__(
        self,
        llm: LLMProvider,
        settings: Settings,
        estimator: TokenEstimator = estimate_tokens,
    ) -> None:
        self._llm = llm
        self._max_input_tokens = settings.max_input_tokens
        self._keep_recent = settings.keep_recent_turns
        self._estimate = estimator

    async def compact(
        self,
        messages: Sequence[ConversationMessage],
        system_token_estimate: int = 0,
    ) -> list[ConversationMessage]:
        available = self._max_input_tokens - system_token_estimate
        used = self._estimate(messages)
        if used <= available or len(messages) <= self._keep_recent:
            return list(messages)

        older = list(messages[: -self._keep_recent])
        recent = list(messages[-self._keep_recent :])
        summary = await self._summarize(older)

        logger.info(
            "history_compacted",
            tokens=used,
            available=available,
            summarized_messages=len(older),
            kept_messages=len(recent),
        )
        return [
            ConversationMessage(role="user", content=f"{SUMMARY_PREFIX}\n{summary}"),
            ConversationMessage(role="assistant", content=SUMMARY_ACKNOWLEDGEMENT),
            *recent,
        ]

    async def _summarize(self, messages: list[ConversationMessage]) -> str:
        transcript = format_history_block(messages, SUMMARY_MESSAGE_CHARS)
        try:
            summary = await self._llm.generate(
                transcript,
                system=SUMMARIZE_SYSTEM,
                temperature=0.0,
                max_tokens=SUMMARY_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("summary_failed", error=str(e))
            return transcript[:SUMMARY_FALLBACK_CHARS]
        return summary.strip() or transcript[:SUMMARY_FALLBACK_CHARS]
