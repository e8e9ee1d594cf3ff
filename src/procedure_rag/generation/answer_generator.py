"""Answer generation over numbered source evidence."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Sequence

from procedure_rag.generation.prompt_templates import (
    ANSWER_SYSTEM,
    CORRECTION_PROMPT,
    format_flagged_list,
    format_sources_block,
)
from procedure_rag.models.domain import ConversationMessage, FlaggedClaim, SearchResultItem
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.llm import LLMProvider

logger = get_logger("generation")

_CITATION_RE = re.compile(r"\[Source (\d+)\]")

LANGUAGE_NAMES = {"fr": "French", "en": "English", "ko": "Korean"}


def build_system_prompt(sources: list[SearchResultItem], language: str) -> str:
    return ANSWER_SYSTEM.format(
        language=LANGUAGE_NAMES.get(language, language),
        sources_block=format_sources_block(sources),
    )


def cited_source_numbers(answer: str, source_count: int) -> list[int]:
    """1-based source numbers cited in ``answer`` that point at a real source."""
    cited = {int(m) for m in _CITATION_RE.findall(answer)}
    return sorted(i for i in cited if 1 <= i <= source_count)


def correction_messages(
    messages: Sequence[ConversationMessage],
    draft: str,
    flagged: list[FlaggedClaim],
) -> list[ConversationMessage]:
    return [
        *messages,
        ConversationMessage(role="assistant", content=draft),
        ConversationMessage(
            role="user",
            content=CORRECTION_PROMPT.format(flagged_list=format_flagged_list(flagged)),
        ),
    ]


class AnswerGenerator:
    def __init__(self, llm: LLMProvider, temperature: float = 0.1, max_tokens: int = 4096) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def generate(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
    ) -> str:
        answer = await self._llm.generate(
            list(messages),
            system=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.info("generated_answer", messages=len(messages), answer_len=len(answer))
        return answer

    async def generate_stream(
        self,
        messages: Sequence[ConversationMessage],
        system_prompt: str,
    ) -> AsyncIterator[str]:
        answer_len = 0
        async for chunk in self._llm.generate_stream(
            list(messages),
            system=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        ):
            answer_len += len(chunk)
            yield chunk
        logger.info("generated_answer_stream", messages=len(messages), answer_len=answer_len)
