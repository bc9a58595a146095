import json

import httpx
import pytest
import respx

from quantumn.providers.gemini import GeminiProvider
from quantumn.providers.provider_trait import (
    ApiError,
    Message,
    NetworkError,
    Role,
    StreamChunk,
)

BASE = "https://gemini.example.com/v1"
URL = f"{BASE}/chat/completions"


def _provider():
    return GeminiProvider(model="gemini-1.5-pro", api_key="placeholder", base_url=BASE)


def _sse(*events):
    return "".join(f"{event}\n\n" for event in events).encode()


def test_defaults_from_environment(monkeypatch):
    for var in ("GEMINI_API_KEY", "GEMINI_BASE_URL", "GEMINI_MODEL"):
        monkeypatch.delenv(var, raising=False)
    provider = GeminiProvider()
    assert provider.model == "gemini-1.5-flash"
    assert provider.base_url == "https://generativelanguage.googleapis.com/v1beta/openai"
    assert provider.is_configured() is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "placeholder")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-1.0-pro")
    provider = GeminiProvider()
    assert provider.is_configured() is True
    assert provider.model == "gemini-1.0-pro"


def test_explicit_model_wins(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-1.0-pro")
    assert GeminiProvider(model="gemini-1.5-pro").model == "gemini-1.5-pro"


def test_static_metadata():
    provider = _provider()
    assert provider.name == "Gemini"
    assert provider.models() == ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-1.0-pro"]
    assert provider.cost_per_million() == (0.075, 0.3)


def test_count_tokens_is_a_quarter_of_bytes():
    provider = _provider()
    assert provider.count_tokens("") == 0
    assert provider.count_tokens("abcd" * 25) == 25


@pytest.mark.asyncio
async def test_send_with_system_builds_request_and_returns_text():
    with respx.mock:
        route = respx.post(URL).mock(
            return_value=httpx.Response(
                200, json={"choices": [{"message": {"role": "assistant", "content": "hi there"}}]}
            )
        )
        reply = await _provider().send_with_system([Message(Role.USER, "hello")], "be brief")
    assert reply == "hi there"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer placeholder"
    assert json.loads(request.content) == {
        "model": "gemini-1.5-pro",
        "messages": [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hello"},
        ],
        "stream": False,
    }


@pytest.mark.asyncio
async def test_send_without_system_sends_only_messages():
    with respx.mock:
        route = respx.post(URL).mock(
            return_value=httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "ok"}}]})
        )
        reply = await _provider().send([Message(Role.ASSISTANT, "prev"), Message(Role.USER, "next")])
    assert reply == "ok"
    sent = json.loads(route.calls.last.request.content)["messages"]
    assert [m["role"] for m in sent] == ["assistant", "user"]


@pytest.mark.asyncio
async def test_empty_choices_give_empty_text():
    with respx.mock:
        respx.post(URL).mock(return_value=httpx.Response(200, json={"choices": []}))
        assert await _provider().send([Message(Role.USER, "x")]) == ""


@pytest.mark.asyncio
async def test_missing_choices_is_api_error():
    with respx.mock:
        respx.post(URL).mock(return_value=httpx.Response(200, json={"other": 1}))
        with pytest.raises(ApiError):
            await _provider().send([Message(Role.USER, "x")])


@pytest.mark.asyncio
async def test_error_status_is_api_error_with_body():
    with respx.mock:
        respx.post(URL).mock(return_value=httpx.Response(401, text="bad key"))
        with pytest.raises(ApiError) as info:
            await _provider().send([Message(Role.USER, "x")])
    assert info.value.detail == "bad key"


@pytest.mark.asyncio
async def test_connection_failure_is_network_error():
    with respx.mock:
        respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError):
            await _provider().send([Message(Role.USER, "x")])


@pytest.mark.asyncio
async def test_stream_yields_content_chunks():
    body = _sse(
        "data: " + json.dumps({"choices": [{"delta": {"content": "Hel"}, "finish_reason": None}]}),
        ": keepalive",
        "data: " + json.dumps({"choices": [{"delta": {}, "finish_reason": None}]}),
        "data: " + json.dumps({"choices": [{"delta": {"content": "lo"}, "finish_reason": "stop"}]}),
        "data: [DONE]",
    )
    with respx.mock:
        route = respx.post(URL).mock(return_value=httpx.Response(200, content=body))
        chunks = [c async for c in _provider().send_stream([Message(Role.USER, "hi")])]
    assert chunks == [StreamChunk("Hel", False), StreamChunk("lo", True)]
    sent = json.loads(route.calls.last.request.content)
    assert sent["stream"] is True
    assert sent["messages"] == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_stream_connection_failure_is_network_error():
    with respx.mock:
        respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError):
            [c async for c in _provider().send_stream([Message(Role.USER, "hi")])]