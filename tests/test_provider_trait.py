import pytest

from quantumn.providers.provider_trait import (
    ApiError,
    AuthError,
    ConfigError,
    Message,
    ModelNotFoundError,
    NetworkError,
    Provider,
    ProviderError,
    RateLimitError,
    Role,
    StreamChunk,
)


def test_role_values_are_lowercase_names():
    assert [r.value for r in Role] == ["system", "user", "assistant"]
    assert Role("assistant") is Role.ASSISTANT


def test_role_rejects_unknown_value():
    with pytest.raises(ValueError):
        Role("robot")


def test_message_name_defaults_to_none():
    msg = Message(Role.USER, "hello")
    assert msg.name is None
    assert msg == Message(Role.USER, "hello", None)


def test_stream_chunk_defaults():
    chunk = StreamChunk("abc")
    assert (chunk.content, chunk.done, chunk.tokens) == ("abc", False, None)


@pytest.mark.parametrize(
    ("cls", "prefix"),
    [
        (ApiError, "API error"),
        (AuthError, "Authentication error"),
        (ModelNotFoundError, "Model not found"),
        (NetworkError, "Network error"),
        (ConfigError, "Configuration error"),
    ],
)
def test_error_messages(cls, prefix):
    err = cls("boom")
    assert str(err) == f"{prefix}: boom"
    assert err.detail == "boom"
    assert isinstance(err, ProviderError)


def test_rate_limit_message():
    err = RateLimitError()
    assert str(err) == "Rate limit exceeded"
    assert isinstance(err, ProviderError)


def test_provider_is_abstract():
    with pytest.raises(TypeError):
        Provider()