"""Groq provider using its OpenAI-compatible chat endpoint."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Sequence

from quantumn.providers.provider_trait import (
    Message,
    Provider,
    StreamChunk,
    _approx_tokens,
    _openai_chat,
    _openai_chat_stream,
    _openai_messages,
)

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


class GroqProvider(Provider):
    """Chat client for Groq; settings default to GROQ_* environment variables."""

    name = "Groq"

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get("GROQ_API_KEY", "")
        self.base_url = (
            base_url if base_url is not None else os.environ.get("GROQ_BASE_URL", DEFAULT_BASE_URL)
        )
        self.model = model if model is not None else os.environ.get("GROQ_MODEL", DEFAULT_MODEL)

    @property
    def _url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def models(self) -> list[str]:
        return [
            "llama-3.3-70b-versatile",
            "llama3-70b-8192",
            "mixtral-8x7b-32768",
            "gemma2-9b-it",
        ]

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, messages: Sequence[Message]) -> str:
        return await self.send_with_system(messages, None)

    async def send_with_system(
        self, messages: Sequence[Message], system: str | None = None
    ) -> str:
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages, system),
            "stream": False,
        }
        return await _openai_chat(self._url, payload, self._headers)

    async def send_stream(self, messages: Sequence[Message]) -> AsyncIterator[StreamChunk]:
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages),
            "stream": True,
        }
        async for chunk in _openai_chat_stream(self._url, payload, self._headers):
            yield chunk

    def count_tokens(self, text: str) -> int:
        return _approx_tokens(text)

    def cost_per_million(self) -> tuple[float, float]:
        return (0.59, 0.79)