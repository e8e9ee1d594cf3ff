"""Protocol for LLM providers."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Protocol

from procedure_rag.models.domain import ConversationMessage

Prompt = str | Sequence[ConversationMessage]


class LLMProvider(Protocol):
    async def generate(
        self,
        prompt: Prompt,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> str: ...

    def generate_stream(
        self,
        prompt: Prompt,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4096,
    ) -> AsyncIterator[str]: ...
