"""Alternative backend interface built around richer response objects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class ChatMessage:
    """A conversation message with a free-form role."""

    role: str
    content: str


@dataclass(frozen=True)
class TokenUsage:
    """Token counts for one request."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ModelSpec:
    """What a model is and what it supports."""

    id: str
    name: str
    provider: str
    context_window: int
    supports_vision: bool
    supports_tools: bool


@dataclass(frozen=True)
class ModelCost:
    """Price per million tokens."""

    input_per_million: float
    output_per_million: float


@dataclass
class Response:
    """A completed reply from a backend."""

    content: str
    model: str
    usage: TokenUsage
    finish_reason: str


class ChatBackend(ABC):
    """A chat backend returning full Response objects.

    ``name`` is the backend's name, ``default_model`` the model used when
    none is given and ``api_key_env`` the environment variable holding its key.
    """

    name: ClassVar[str]
    api_key_env: ClassVar[str]
    default_model: str

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether an API key is available."""

    @abstractmethod
    def list_models(self) -> list[ModelSpec]:
        """Models the backend offers."""

    @abstractmethod
    async def chat(
        self, messages: Sequence[ChatMessage], model: str | None = None
    ) -> Response:
        """Send a conversation."""

    @abstractmethod
    async def chat_with_system(
        self, messages: Sequence[ChatMessage], system: str, model: str | None = None
    ) -> Response:
        """Send a conversation preceded by a system prompt."""

    @abstractmethod
    async def stream_chat(
        self,
        messages: Sequence[ChatMessage],
        model: str | None,
        on_token: Callable[[str], None],
    ) -> Response:
        """Stream a reply, calling ``on_token`` for each piece, and return it whole."""

    @abstractmethod
    def count_tokens(self, messages: Sequence[ChatMessage], model: str | None = None) -> int:
        """Estimated token count of ``messages``."""

    @abstractmethod
    def estimate_cost(self, usage: TokenUsage, model: str | None = None) -> float:
        """Estimated cost of a request with the given usage."""

    @abstractmethod
    def set_api_key(self, key: str) -> None:
        """Replace the API key at run time."""