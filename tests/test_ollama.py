import json

import httpx
import pytest
import respx

from quantumn.providers.ollama import (
    ModelDetails,
    OllamaModelDetail,
    OllamaProvider,
)
from quantumn.providers.provider_trait import (
    ApiError,
    Message,
    NetworkError,
    Role,
)

BASE = "http://localhost:11434"


def _chat_body(content, done=True):
    return {"message": {"role": "assistant", "content": content}, "done": done}


def test_defaults():
    provider = OllamaProvider()
    assert provider.model == "llama3.2"
    assert provider.base_url == "http://localhost:11434"
    assert provider.name == "Ollama"


def test_custom_model_and_base_url():
    provider = OllamaProvider(model="mistral", base_url="http://example.com:9000")
    assert provider.model == "mistral"
    assert provider.base_url == "http://example.com:9000"


def test_fallback_models_and_flags():
    provider = OllamaProvider()
    models = provider.models()
    assert models[0] == "ollama_isnt_running"
    assert "codellama" in models
    assert provider.is_configured() is True
    assert provider.cost_per_million() == (0.0, 0.0)


def test_count_tokens():
    provider = OllamaProvider()
    assert provider.count_tokens("") == 0
    assert provider.count_tokens("x" * 400) == 100


@pytest.mark.asyncio
async def test_send_returns_content_and_posts_payload():
    provider = OllamaProvider(model="mistral")
    with respx.mock:
        route = respx.post(f"{BASE}/api/chat").mock(
            return_value=httpx.Response(200, json=_chat_body("hello there"))
        )
        reply = await provider.send([Message(Role.USER, "hi")])
    assert reply == "hello there"
    body = json.loads(route.calls.last.request.content)
    assert body == {
        "model": "mistral",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }


@pytest.mark.asyncio
async def test_send_with_system_prepends_system_message():
    provider = OllamaProvider()
    with respx.mock:
        route = respx.post(f"{BASE}/api/chat").mock(
            return_value=httpx.Response(200, json=_chat_body("ok"))
        )
        reply = await provider.send_with_system(
            [Message(Role.USER, "q"), Message(Role.ASSISTANT, "a")], "be brief"
        )
    assert reply == "ok"
    sent = json.loads(route.calls.last.request.content)["messages"]
    assert sent == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "q"},
        {"role": "assistant", "content": "a"},
    ]


@pytest.mark.asyncio
async def test_send_error_status_raises_api_error_with_body():
    provider = OllamaProvider()
    with respx.mock:
        respx.post(f"{BASE}/api/chat").mock(return_value=httpx.Response(500, text="model missing"))
        with pytest.raises(ApiError) as info:
            await provider.send([Message(Role.USER, "hi")])
    assert info.value.detail == "model missing"


@pytest.mark.asyncio
async def test_send_network_failure_raises_network_error():
    provider = OllamaProvider()
    with respx.mock:
        respx.post(f"{BASE}/api/chat").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError):
            await provider.send([Message(Role.USER, "hi")])


@pytest.mark.asyncio
async def test_send_malformed_reply_raises_api_error():
    provider = OllamaProvider()
    with respx.mock:
        respx.post(f"{BASE}/api/chat").mock(return_value=httpx.Response(200, json={"foo": 1}))
        with pytest.raises(ApiError):
            await provider.send([Message(Role.USER, "hi")])


@pytest.mark.asyncio
async def test_send_stream_yields_each_line():
    provider = OllamaProvider()
    lines = [_chat_body("Hel", False), _chat_body("lo", False), _chat_body("", True)]
    content = "\n".join(json.dumps(line) for line in lines).encode()
    with respx.mock:
        respx.post(f"{BASE}/api/chat").mock(return_value=httpx.Response(200, content=content))
        chunks = [chunk async for chunk in provider.send_stream([Message(Role.USER, "hi")])]
    assert "".join(c.content for c in chunks) == "Hello"
    assert [c.done for c in chunks] == [False, False, True]


@pytest.mark.asyncio
async def test_send_stream_bad_json_raises_api_error():
    provider = OllamaProvider()
    with respx.mock:
        respx.post(f"{BASE}/api/chat").mock(return_value=httpx.Response(200, content=b"not json"))
        with pytest.raises(ApiError):
            async for _ in provider.send_stream([Message(Role.USER, "hi")]):
                pass


@pytest.mark.asyncio
async def test_is_running_true_and_false():
    provider = OllamaProvider()
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(return_value=httpx.Response(200, json={"models": []}))
        assert await provider.is_running() is True
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(side_effect=httpx.ConnectError("refused"))
        assert await provider.is_running() is False
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(return_value=httpx.Response(503))
        assert await provider.is_running() is False


@pytest.mark.asyncio
async def test_list_models_returns_names():
    provider = OllamaProvider()
    payload = {"models": [{"name": "llama3:latest"}, {"name": "mistral:7b"}]}
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(return_value=httpx.Response(200, json=payload))
        names = await provider.list_models()
    assert names == ["llama3:latest", "mistral:7b"]


@pytest.mark.asyncio
async def test_list_models_failure_message():
    provider = OllamaProvider()
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(return_value=httpx.Response(500, text="boom"))
        with pytest.raises(ApiError) as info:
            await provider.list_models()
    assert info.value.detail == "Failed to list models"


@pytest.mark.asyncio
async def test_list_models_detailed_parses_entries():
    provider = OllamaProvider()
    entry = {
        "name": "llama3:latest",
        "modified_at": "2024-05-01T10:00:00Z",
        "size": 4661224676,
        "digest": "abc123",
        "details": {"family": "llama", "parameter_size": "8B", "families": ["llama"]},
    }
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(
            return_value=httpx.Response(200, json={"models": [entry, {**entry, "details": None}]})
        )
        models = await provider.list_models_detailed()
    assert models[0] == OllamaModelDetail(
        name="llama3:latest",
        modified_at="2024-05-01T10:00:00Z",
        size=4661224676,
        digest="abc123",
        details=ModelDetails(family="llama", families=["llama"], parameter_size="8B"),
    )
    assert models[1].details is None


@pytest.mark.asyncio
async def test_list_models_detailed_missing_field_raises():
    provider = OllamaProvider()
    with respx.mock:
        respx.get(f"{BASE}/api/tags").mock(
            return_value=httpx.Response(200, json={"models": [{"name": "x"}]})
        )
        with pytest.raises(ApiError):
            await provider.list_models_detailed()


@pytest.mark.asyncio
async def test_list_running_models():
    provider = OllamaProvider()
    entry = {"name": "llama3", "model": "llama3", "size": 10, "digest": "d", "size_vram": 5}
    with respx.mock:
        respx.get(f"{BASE}/api/ps").mock(return_value=httpx.Response(200, json={"models": [entry]}))
        running = await provider.list_running_models()
    assert [(m.name, m.size, m.size_vram, m.expires_at) for m in running] == [
        ("llama3", 10, 5, None)
    ]


@pytest.mark.asyncio
async def test_list_running_models_failure_message():
    provider = OllamaProvider()
    with respx.mock:
        respx.get(f"{BASE}/api/ps").mock(return_value=httpx.Response(404))
        with pytest.raises(ApiError) as info:
            await provider.list_running_models()
    assert info.value.detail == "Failed to list running models"


@pytest.mark.asyncio
async def test_show_model_posts_name_and_parses():
    provider = OllamaProvider()
    reply = {"license": "MIT", "template": "{{ .Prompt }}", "details": {"format": "gguf"}}
    with respx.mock:
        route = respx.post(f"{BASE}/api/show").mock(return_value=httpx.Response(200, json=reply))
        info = await provider.show_model("llama3")
    assert json.loads(route.calls.last.request.content) == {"name": "llama3"}
    assert info.license == "MIT"
    assert info.template == "{{ .Prompt }}"
    assert info.details == ModelDetails(format="gguf")
    assert info.system is None


@pytest.mark.asyncio
async def test_show_model_failure_names_model():
    provider = OllamaProvider()
    with respx.mock:
        respx.post(f"{BASE}/api/show").mock(return_value=httpx.Response(404))
        with pytest.raises(ApiError) as info:
            await provider.show_model("ghost")
    assert info.value.detail == "Failed to show model: ghost"