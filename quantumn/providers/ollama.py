"""Ollama provider: chat with a local Ollama server and query its models."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
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

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2"

FALLBACK_MODELS: tuple[str, ...] = (
    "ollama_isnt_running",
    "llama2",
    "llama3.2",
    "llama3.1",
    "llama3",
    "mistral",
    "mistral-nemo",
    "codellama",
    "deepseek-coder",
    "deepseek-coder-v2",
    "qwen2.5-coder",
    "qwen2.5",
    "phi3",
    "phi3-mini",
    "gemma2",
    "gemma2-9b",
    "starcoder2",
    "codestral",
    "wizardcoder",
    "wizardlm2",
    "llava",
    "mixtral",
    "command-r-plus",
)


@dataclass
class ModelDetails:
    """Format and size details reported for a model."""

    format: str | None = None
    family: str | None = None
    families: list[str] | None = None
    parameter_size: str | None = None
    quantization_level: str | None = None


@dataclass
class OllamaModelDetail:
    """An installed model as listed by ``/api/tags``."""

    name: str
    modified_at: str
    size: int
    digest: str
    details: ModelDetails | None = None


@dataclass
class OllamaRunningModel:
    """A model currently loaded, as listed by ``/api/ps``."""

    name: str
    model: str
    size: int
    digest: str
    options: Any = None
    expires_at: str | None = None
    size_vram: int | None = None


@dataclass
class OllamaModelInfo:
    """Full model description returned by ``/api/show``."""

    license: str | None = None
    modelfile: str | None = None
    parameters: str | None = None
    template: str | None = None
    system: str | None = None
    details: ModelDetails | None = None
    messages: list[Any] | None = None


def _model_details(data: Any) -> ModelDetails | None:
    if not isinstance(data, dict):
        return None
    return ModelDetails(
        format=data.get("format"),
        family=data.get("family"),
        families=data.get("families"),
        parameter_size=data.get("parameter_size"),
        quantization_level=data.get("quantization_level"),
    )


def _models_field(data: Any) -> list[Any]:
    try:
        models = data["models"]
    except (KeyError, TypeError) as exc:
        raise ApiError(f"Malformed response: {exc!r}") from exc
    if not isinstance(models, list):
        raise ApiError("Malformed response: 'models' is not a list")
    return models


def _model_detail(data: Any) -> OllamaModelDetail:
    try:
        return OllamaModelDetail(
            name=data["name"],
            modified_at=data["modified_at"],
            size=data["size"],
            digest=data["digest"],
            details=_model_details(data.get("details")),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ApiError(f"Malformed model entry: {exc!r}") from exc


def _running_model(data: Any) -> OllamaRunningModel:
    try:
        return OllamaRunningModel(
            name=data["name"],
            model=data["model"],
            size=data["size"],
            digest=data["digest"],
            options=data.get("options"),
            expires_at=data.get("expires_at"),
            size_vram=data.get("size_vram"),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ApiError(f"Malformed running model entry: {exc!r}") from exc


def _chat_reply(data: Any) -> tuple[str, bool]:
    try:
        message = data["message"]
        content = message["content"]
        message["role"]
        done = data["done"]
    except (KeyError, TypeError) as exc:
        raise ApiError(f"Malformed chat response: {exc!r}") from exc
    if not isinstance(content, str):
        raise ApiError("Malformed chat response: content is not a string")
    return content, bool(done)


class OllamaProvider(Provider):
    """Chat client for a local Ollama server; no API key is needed."""

    name = "Ollama"

    def __init__(self, model: str | None = None, base_url: str | None = None) -> None:
        self.model = model if model is not None else DEFAULT_MODEL
        self.base_url = base_url if base_url is not None else DEFAULT_BASE_URL

    async def _request(
        self,
        method: str,
        path: str,
        *,
        failure: str | None = None,
        payload: Any = None,
    ) -> Any:
        """Make a request and decode the JSON reply.

        On an unsuccessful status, raises ApiError with ``failure`` or,
        when that is None, with the response body.
        """
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                response = await client.request(method, f"{self.base_url}{path}", json=payload)
            except httpx.HTTPError as exc:
                raise NetworkError(str(exc)) from exc
        if not response.is_success:
            raise ApiError(failure if failure is not None else response.text)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(str(exc)) from exc

    async def is_running(self) -> bool:
        """Whether the server answers ``/api/tags`` successfully."""
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                response = await client.get(f"{self.base_url}/api/tags")
            except httpx.HTTPError:
                return False
        return response.is_success

    async def list_models(self) -> list[str]:
        """Names of the installed models."""
        data = await self._request("GET", "/api/tags", failure="Failed to list models")
        try:
            return [entry["name"] for entry in _models_field(data)]
        except (KeyError, TypeError) as exc:
            raise ApiError(f"Malformed model entry: {exc!r}") from exc

    async def list_models_detailed(self) -> list[OllamaModelDetail]:
        """Installed models with size, digest and details."""
        data = await self._request("GET", "/api/tags", failure="Failed to list models")
        return [_model_detail(entry) for entry in _models_field(data)]

    async def list_running_models(self) -> list[OllamaRunningModel]:
        """Models currently loaded by the server."""
        data = await self._request("GET", "/api/ps", failure="Failed to list running models")
        return [_running_model(entry) for entry in _models_field(data)]

    async def show_model(self, model: str) -> OllamaModelInfo:
        """Full description of ``model``."""
        data = await self._request(
            "POST", "/api/show", failure=f"Failed to show model: {model}", payload={"name": model}
        )
        if not isinstance(data, dict):
            raise ApiError("Malformed response: expected an object")
        return OllamaModelInfo(
            license=data.get("license"),
            modelfile=data.get("modelfile"),
            parameters=data.get("parameters"),
            template=data.get("template"),
            system=data.get("system"),
            details=_model_details(data.get("details")),
            messages=data.get("messages"),
        )

    def models(self) -> list[str]:
        """A fixed list of well-known models, used when the server is not queried."""
        return list(FALLBACK_MODELS)

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
            "stream": False,
        }
        data = await self._request("POST", "/api/chat", payload=payload)
        content, _ = _chat_reply(data)
        return content

    async def send_stream(self, messages: Sequence[Message]) -> AsyncIterator[StreamChunk]:
        payload = {
            "model": self.model,
            "messages": _openai_messages(messages),
            "stream": True,
        }
        async with httpx.AsyncClient(timeout=None) as client:
            try:
                async with client.stream(
                    "POST", f"{self.base_url}/api/chat", json=payload
                ) as response:
                    try:
                        async for line in response.aiter_lines():
                            if not line.strip():
                                continue
                            try:
                                data = json.loads(line)
                            except ValueError as exc:
                                raise ApiError(str(exc)) from exc
                            content, done = _chat_reply(data)
                            yield StreamChunk(content=content, done=done)
                    except httpx.HTTPError as exc:
                        raise ApiError(str(exc)) from exc
            except httpx.HTTPError as exc:
                raise NetworkError(str(exc)) from exc

    def count_tokens(self, text: str) -> int:
        return _approx_tokens(text)

    def cost_per_million(self) -> tuple[float, float]:
        return (0.0, 0.0)