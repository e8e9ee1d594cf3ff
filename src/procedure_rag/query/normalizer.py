"""LLM-backed query normalization: translation, reformulation and expansion.

Every operation here fails open. A missing or broken LLM answer degrades to
the caller's original text (or no expansions), never to an exception.
"""

from __future__ import annotations

from collections.abc import Sequence

from procedure_rag.config.constants import (
    MAX_EXPANSIONS,
    NORMALIZER_MAX_TOKENS,
    REFORMULATION_MESSAGE_CHARS,
)
from procedure_rag.config.settings import Settings
from procedure_rag.generation.output_parsing import parse_string_list
from procedure_rag.generation.prompt_templates import (
    EXPAND_SYSTEM,
    REFORMULATE_PROMPT,
    REFORMULATE_SYSTEM,
    TRANSLATE_SYSTEM,
    format_history_block,
)
from procedure_rag.models.domain import ConversationMessage
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.llm import LLMProvider

logger = get_logger("query_normalizer")


class QueryNormalizer:
    def __init__(self, llm: LLMProvider, settings: Settings) -> None:
        self._llm = llm
        self._pivot = settings.pivot_language
        self._history_messages = settings.reformulation_history_messages
        self._min_length_ratio = settings.reformulation_min_length_ratio

    async def translate_to_pivot(self, text: str, language: str) -> str:
        if language == self._pivot:
            return text
        try:
            translated = await self._llm.generate(
                text,
                system=TRANSLATE_SYSTEM,
                temperature=0.0,
                max_tokens=NORMALIZER_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("translation_failed", language=language, error=str(e))
            return text

        translated = translated.strip()
        if not translated:
            return text
        logger.info("query_translated", language=language, pivot_query=translated)
        return translated

    async def reformulate_query(self, messages: Sequence[ConversationMessage]) -> str:
        """Rewrite the latest user message as a standalone query using recent history."""
        if not messages:
            return ""
        latest = messages[-1]
        if latest.role != "user" or len(messages) == 1:
            return latest.content

        history = list(messages[:-1])[-self._history_messages :]
        prompt = REFORMULATE_PROMPT.format(
            history_block=format_history_block(history, REFORMULATION_MESSAGE_CHARS),
            message=latest.content,
        )
        try:
            reformulated = await self._llm.generate(
                prompt,
                system=REFORMULATE_SYSTEM,
                temperature=0.0,
                max_tokens=NORMALIZER_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("reformulation_failed", error=str(e))
            return latest.content

        reformulated = reformulated.strip()
        if not reformulated:
            return latest.content
        # Guard against the model truncating the question.
        if len(reformulated) < len(latest.content) * self._min_length_ratio:
            logger.warning(
                "reformulation_too_short",
                original_len=len(latest.content),
                reformulated_len=len(reformulated),
            )
            return latest.content

        logger.info("query_reformulated", original=latest.content, reformulated=reformulated)
        return reformulated

    async def expand_query(self, text: str) -> list[str]:
        try:
            raw = await self._llm.generate(
                text,
                system=EXPAND_SYSTEM,
                temperature=0.0,
                max_tokens=NORMALIZER_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("expansion_failed", error=str(e))
            return []

        outcome = parse_string_list(raw, limit=MAX_EXPANSIONS)
        if not outcome.ok:
            logger.warning("expansion_unparseable", raw=raw[:200])
        elif outcome.stage == "fallback":
            logger.info("expansion_parsed_leniently", count=len(outcome.value))
        return outcome.value
