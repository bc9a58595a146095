"""OpenCode Zen provider using its OpenAI-compatible chat endpoint."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from quantumn.providers.provider_trait import (
    ApiError,
    Message,
    NetworkError,
    Provider,
    StreamChunk,
    _approx_tokens,
    _openai_messages,
)

DEFAULT_BASE_URL = "https://opencode.ai/zen/v1"
DEFAULT_MODEL = "qwen-2.5-coder-7b"
MAX_TOKENS = 4096


def _reply_text(data: Any) -> str:
    try:
        choices = data["choices"]
        if not choices:
            return ""
        content = choices[0]["message"].get("content")
    except (KeyError, TypeError, IndexError, AttributeError) as exc:
        raise ApiError(f"Malformed response: {exc!r}") from exc
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ApiError("Malformed response: message content is not a string")
    return content


class OpenCodeProvider(Provider):
    """Chat client for OpenCode Zen; the key defaults to OPENCODE_API_KEY."""

    name = "OpenCode"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self.model = model if model is not None else DEFAULT_MODEL
        self.base_url = base_url if base_url is not None else DEFAULT_BASE_URL
        self.api_key = api_key if api_key is not None else os.environ.get("OPENCODE_API_KEY")

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key is not None:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def models(self) -> list[str]:
        return [
            "qwen-2.5-coder-7b",
            "qwen-2.5-coder-14b",
            "qwen-2.5-coder-32b",
            "qwen-2.5-coder-72b",
            "deepseek-coder-v2",
            "deepseek-coder-v2.5",
            "llama-3.1-sonar-small",
            "llama-3.1-sonar-large",
            "gemma-2-27b",
        ]

    def is_configured(self) -> bool:
        return True

    async def send(self, messages: Sequence[Message]) -> str:
        return await self.send_with_system(messages, None)

    async def send_with_system(
        self, messages: Sequence[Message], system: str | None = None
    ) -> str:
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages, system),
            "max_tokens": MAX_TOKENS,
            "stream": False,
        }
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/chat/completions", json=payload, headers=self._headers
                )
            except httpx.HTTPError as exc:
                raise NetworkError(str(exc)) from exc
        if not response.is_success:
            raise ApiError(response.text)
        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError(str(exc)) from exc
        return _reply_text(data)

    async def send_stream(self, messages: Sequence[Message]) -> AsyncIterator[StreamChunk]:
        """Fetch the whole reply and yield it as one final chunk."""
        text = await self.send(messages)
        yield StreamChunk(content=text, done=True)

    def count_tokens(self, text: str) -> int:
        return _approx_tokens(text)

    def cost_per_million(self) -> tuple[float, float]:
        return (0.0, 0.0)