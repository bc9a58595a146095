"""llama.cpp provider: chat with a local llama.cpp OpenAI-compatible server."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path

import httpx

from quantumn.providers.ollama_discovery import detect_models_comprehensive
from quantumn.providers.provider_trait import (
    ApiError,
    ConfigError,
    Message,
    NetworkError,
    Provider,
    StreamChunk,
    _approx_tokens,
    _openai_chat,
    _openai_messages,
    _openai_stream_chunk,
)

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
FALLBACK_MODEL = "llama3.2"


class LlamaCppProvider(Provider):
    """Chat client for a running llama.cpp server.

    ``model_paths`` maps model names to GGUF files. A model counts as
    configured only when its GGUF file can be found on disk; requests are
    sent to the server using the model name.
    """

    name = "llama.cpp"

    def __init__(
        self,
        model_paths: Mapping[str, str] | None = None,
        port: int = DEFAULT_PORT,
        model: str | None = None,
    ) -> None:
        self.model_paths: dict[str, str] = dict(model_paths or {})
        self.port = port
        if model is None:
            model = next(iter(self.model_paths), FALLBACK_MODEL)
        self.model = model
        self.resolved_model_path: Path | None = self._resolve_model_path(model)

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def _chat_url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def _resolve_model_path(self, model_name: str) -> Path | None:
        """Find the GGUF file for a model name, from settings or the name itself."""
        configured = self.model_paths.get(model_name)
        if configured is not None:
            path = Path(configured)
            if path.exists():
                logger.debug("LlamaCpp: Resolved model %r from config: %s", model_name, path)
                return path
            logger.warning(
                "LlamaCpp: Configured model path for %r does not exist: %s", model_name, path
            )

        direct = Path(model_name)
        if direct.suffix == ".gguf" and direct.exists():
            logger.debug("LlamaCpp: Model name %r is a direct GGUF path", model_name)
            return direct

        logger.warning("LlamaCpp: Could not resolve model path for %r", model_name)
        return None

    def set_model(self, model: str) -> None:
        """Switch model and resolve its GGUF file again."""
        self.model = model
        self.resolved_model_path = self._resolve_model_path(model)

    def _require_resolved(self, action: str) -> None:
        if self.resolved_model_path is None:
            raise ConfigError(
                f"Model path for '{self.model}' not resolved. "
                f"Cannot {action} llama.cpp server."
            )

    async def is_running(self) -> bool:
        """Whether the server answers ``/health`` successfully."""
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                response = await client.get(f"{self.base_url}/health")
            except httpx.HTTPError:
                return False
        return response.is_success

    def models(self) -> list[str]:
        """Configured models plus Ollama models whose weights can be found, sorted."""
        names = list(self.model_paths)
        for name in detect_models_comprehensive().names:
            if name not in names and self._resolve_model_path(name) is not None:
                names.append(name)
        return sorted(names)

    def is_configured(self) -> bool:
        return self.resolved_model_path is not None

    async def send(self, messages: Sequence[Message]) -> str:
        return await self.send_with_system(messages, None)

    async def send_with_system(
        self, messages: Sequence[Message], system: str | None = None
    ) -> str:
        self._require_resolved("send to")
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages, system),
            "stream": False,
            "cache_prompt": True,
        }
        return await _openai_chat(self._chat_url, payload)

    async def send_stream(self, messages: Sequence[Message]) -> AsyncIterator[StreamChunk]:
        self._require_resolved("stream from")
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages),
            "stream": True,
            "cache_prompt": True,
        }
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                async with client.stream("POST", self._chat_url, json=payload) as response:
                    if not response.is_success:
                        body = await response.aread()
                        raise ApiError(body.decode("utf-8", errors="replace"))
                    try:
                        async for line in response.aiter_lines():
                            if line == "data: [DONE]":
                                yield StreamChunk(content="", done=True)
                                return
                            chunk = _openai_stream_chunk(line)
                            if chunk is not None:
                                yield chunk
                    except httpx.HTTPError as exc:
                        raise ApiError(str(exc)) from exc
            except httpx.HTTPError as exc:
                raise NetworkError(str(exc)) from exc

    def count_tokens(self, text: str) -> int:
        return _approx_tokens(text)

    def cost_per_million(self) -> tuple[float, float]:
        return (0.0, 0.0)