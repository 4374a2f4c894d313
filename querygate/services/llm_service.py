"""
LLM Service

Generation boundary for the natural-language query service: a system prompt
plus `[{role, content}]` messages in, free text out.
"""
from __future__ import annotations

import asyncio
import threading
import time
from typing import Protocol

from querygate.core.config import settings
from querygate.core.exceptions import LLMError
from querygate.core.logging import get_llm_logger, get_logger

logger = get_logger(__name__)
llm_logger = get_llm_logger()

# Cached API client (created once, thread-safe)
_client_lock = threading.Lock()
_anthropic_client = None


def _get_anthropic_client():
    global _anthropic_client
    if _anthropic_client is None:
        with _client_lock:
            if _anthropic_client is None:
                from anthropic import Anthropic

                _anthropic_client = Anthropic(api_key=settings.anthropic_api_key)
    return _anthropic_client


class LanguageModel(Protocol):
    """Anything that turns a system prompt and chat messages into text."""

    @property
    def is_configured(self) -> bool: ...

    async def generate(self, system_prompt: str, messages: list[dict[str, str]]) -> str: ...


class AnthropicLanguageModel:
    """Anthropic Messages API, called from a worker thread."""

    def __init__(self, model: str | None = None, max_tokens: int | None = None, client=None):
        self.model = model or settings.llm_model
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or settings.llm_configured

    @property
    def client(self):
        return self._client or _get_anthropic_client()

    def _generate_sync(self, system_prompt: str, messages: list[dict[str, str]]) -> str:
        start = time.perf_counter()
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[m for m in messages if m["role"] != "system"],
            )
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise LLMError(f"Language model request failed: {e}") from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        text = "".join(
            getattr(block, "text", "") for block in (response.content or []) if getattr(block, "type", "") == "text"
        ).strip()

        llm_logger.info(
            f"model={self.model} system_chars={len(system_prompt)} messages={len(messages)} "
            f"response_chars={len(text)} elapsed_ms={elapsed_ms}"
        )
        return text

    async def generate(self, system_prompt: str, messages: list[dict[str, str]]) -> str:
        """
        Generate a response.

        Raises:
            LLMError: If the API call fails
        """
        return await asyncio.to_thread(self._generate_sync, system_prompt, messages)


# Singleton (thread-safe)
_model: AnthropicLanguageModel | None = None
_model_lock = threading.Lock()


def get_language_model() -> AnthropicLanguageModel:
    """Get global model instance (thread-safe)."""
    global _model
    if _model is None:
        with _model_lock:
            if _model is None:
                _model = AnthropicLanguageModel()
    return _model
