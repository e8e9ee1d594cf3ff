"""Local token estimation with tiktoken."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import TypeVar

import tiktoken

from procedure_rag.config.constants import PER_MESSAGE_OVERHEAD, REPLY_PRIMING, TIKTOKEN_ENCODING
from procedure_rag.models.domain import ConversationMessage

T = TypeVar("T")


@lru_cache(maxsize=1)
def _encoding() -> tiktoken.Encoding:
    return tiktoken.get_encoding(TIKTOKEN_ENCODING)


def count_text_tokens(text: str) -> int:
    return len(_encoding().encode(text))


def estimate_tokens(
    messages: Sequence[ConversationMessage],
    instructions: str | None = None,
) -> int:
    """Estimate prompt size: content tokens plus per-message framing and reply priming."""
    total = 0
    if instructions:
        total += count_text_tokens(instructions) + PER_MESSAGE_OVERHEAD
    for message in messages:
        total += count_text_tokens(message.content) + PER_MESSAGE_OVERHEAD
    return total + REPLY_PRIMING


def trim_rag_context(
    results: list[T],
    build_prompt: Callable[[list[T]], str],
    max_tokens: int,
    count_tokens: Callable[[str], int] = count_text_tokens,
) -> list[T]:
    """Drop the lowest-ranked results until the rendered prompt fits ``max_tokens``."""
    kept = list(results)
    while kept and count_tokens(build_prompt(kept)) > max_tokens:
        kept.pop()
    return kept
