"""Google Gemini LLM provider using the google-genai SDK."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from google import genai
from google.genai import types

from procedure_rag.exceptions import GenerationError
from procedure_rag.observability.logger import get_logger
from procedure_rag.protocols.llm import Prompt

logger = get_logger("gemini")

_ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout_s: float = 30.0,
    ) -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model
        self._timeout_s = timeout_s

    async def generate(
        self,
        prompt: Prompt,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> str:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        if system:
            config.system_instruction = system
        if json_output:
            config.response_mime_type = "application/json"

        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=self._to_contents(prompt),
                    config=config,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Gemini generation timed out after {self._timeout_s}s") from e
        except Exception as e:
            raise GenerationError(f"Gemini generation failed: {e}") from e

        text = response.text or ""
        if not text:
            logger.warning("empty_output", model=self._model)
        return text

    async def generate_stream(
        self,
        prompt: Prompt,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4096,
    ) -> AsyncIterator[str]:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        if system:
            config.system_instruction = system

        try:
            stream = await asyncio.wait_for(
                self._client.aio.models.generate_content_stream(
                    model=self._model,
                    contents=self._to_contents(prompt),
                    config=config,
                ),
                timeout=self._timeout_s,
            )
            while True:
                try:
                    chunk = await asyncio.wait_for(anext(stream), timeout=self._timeout_s)
                except StopAsyncIteration:
                    break
                if chunk.text:
                    yield chunk.text
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Gemini stream timed out after {self._timeout_s}s") from e
        except Exception as e:
            raise GenerationError(f"Gemini streaming failed: {e}") from e

    @staticmethod
    def _to_contents(prompt: Prompt) -> str | list[types.Content]:
        if isinstance(prompt, str):
            return prompt
        return [
            types.Content(role=_ROLE_MAP[m.role], parts=[types.Part(text=m.content)])
            for m in prompt
        ]
