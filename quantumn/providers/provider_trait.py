"""Common types for chat providers: roles, messages, stream chunks and errors."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, ClassVar

import httpx


class Role(StrEnum):
    """Who a message comes from."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """One message in a conversation."""

    role: Role
    content: str
    name: str | None = None


@dataclass
class StreamChunk:
    """A piece of a streamed reply."""

    content: str
    done: bool = False
    tokens: int | None = None


class ProviderError(Exception):
    """Base class for every error a provider raises."""

    prefix: ClassVar[str] = "Provider error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}" if detail else self.prefix)


class ApiError(ProviderError):
    prefix = "API error"


class AuthError(ProviderError):
    prefix = "Authentication error"


class RateLimitError(ProviderError):
    prefix = "Rate limit exceeded"


class ModelNotFoundError(ProviderError):
    prefix = "Model not found"


class NetworkError(ProviderError):
    prefix = "Network error"


class ConfigError(ProviderError):
    prefix = "Configuration error"


class Provider(ABC):
    """A chat backend; ``model`` holds the model currently in use."""

    name: ClassVar[str]
    model: str

    @abstractmethod
    def models(self) -> list[str]:
        """Models this provider offers."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the provider has what it needs (an API key and the like)."""

    @abstractmethod
    async def send(self, messages: Sequence[Message]) -> str:
        """Send a conversation and return the reply text."""

    @abstractmethod
    async def send_with_system(
        self, messages: Sequence[Message], system: str | None = None
    ) -> str:
        """Send a conversation preceded by an optional system prompt."""

    @abstractmethod
    def send_stream(self, messages: Sequence[Message]) -> AsyncIterator[StreamChunk]:
        """Send a conversation and iterate over the reply as it arrives."""

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Rough token count of ``text``."""

    @abstractmethod
    def cost_per_million(self) -> tuple[float, float]:
        """Cost per million tokens as (input, output)."""


def _approx_tokens(text: str) -> int:
    return len(text.encode("utf-8")) // 4


def _openai_messages(
    messages: Sequence[Message], system: str | None = None
) -> list[dict[str, str]]:
    converted = [{"role": "system", "content": system}] if system is not None else []
    converted.extend({"role": Role(m.role).value, "content": m.content} for m in messages)
    return converted


def _openai_reply_text(data: Any) -> str:
    try:
        choices = data["choices"]
        if not choices:
            return ""
        content = choices[0]["message"]["content"]
    except (KeyError, TypeError, IndexError) as exc:
        raise ApiError(f"Malformed response: {exc!r}") from exc
    if not isinstance(content, str):
        raise ApiError("Malformed response: message content is not a string")
    return content


def _openai_stream_chunk(line: str) -> StreamChunk | None:
    if not line.startswith("data: "):
        return None
    data = line[6:]
    if data == "[DONE]":
        return None
    try:
        payload = json.loads(data)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    choice = choices[0]
    delta = choice.get("delta")
    content = delta.get("content") if isinstance(delta, dict) else None
    if not isinstance(content, str):
        return None
    return StreamChunk(content=content, done=choice.get("finish_reason") is not None)


async def _openai_chat(
    url: str, payload: Mapping[str, Any], headers: Mapping[str, str] | None = None
) -> str:
    async with httpx.AsyncClient(timeout=None) as client:
        try:
            response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc)) from exc
    if not response.is_success:
        raise ApiError(response.text)
    try:
        data = response.json()
    except ValueError as exc:
        raise ApiError(str(exc)) from exc
    return _openai_reply_text(data)


async def _openai_chat_stream(
    url: str, payload: Mapping[str, Any], headers: Mapping[str, str] | None = None
) -> AsyncIterator[StreamChunk]:
    async with httpx.AsyncClient(timeout=None) as client:
        try:
            async with client.stream("POST", url, json=payload, headers=headers) as response:
                try:
                    async for line in response.aiter_lines():
                        chunk = _openai_stream_chunk(line)
                        if chunk is not None:
                            yield chunk
                except httpx.HTTPError as exc:
                    raise ApiError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc)) from exc