"""Gemini provider using its OpenAI-compatible chat endpoint."""

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

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_MODEL = "gemini-1.5-flash"


class GeminiProvider(Provider):
    """Chat client for Gemini; settings default to GEMINI_* environment variables."""

    name = "Gemini"

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else os.environ.get("GEMINI_API_KEY", "")
        self.base_url = (
            base_url
            if base_url is not None
            else os.environ.get("GEMINI_BASE_URL", DEFAULT_BASE_URL)
        )
        self.model = model if model is not None else os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)

    @property
    def _url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def models(self) -> list[str]:
        return ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-1.0-pro"]

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
        return (0.075, 0.3)