"""Tests for the LiteLLM provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from litellm.exceptions import RateLimitError, Timeout

from src.inference.providers import (
    LiteLLMProvider,
    ProviderRequest,
    RateLimitedError,
    TransientProviderError,
)


class _DummyFunction:
    def __init__(self, arguments: str):
        self.arguments = arguments


class _DummyToolCall:
    def __init__(self, arguments: str):
        self.function = _DummyFunction(arguments)


class _DummyMessage:
    def __init__(self, content: str | None, tool_calls: list[object] | None = None):
        self.content = content
        self.tool_calls = tool_calls


class _DummyChoice:
    def __init__(self, message: _DummyMessage):
        self.message = message


class _DummyUsage:
    prompt_tokens = 120
    completion_tokens = 40


class _DummyResponse:
    def __init__(self, message: _DummyMessage, usage: object | None = None):
        self.choices = [_DummyChoice(message)]
        self.usage = usage


def _request(model: str = "gpt-4o") -> ProviderRequest:
    return ProviderRequest(model=model, messages=({"role": "user", "content": "hi"},))


def _provider(**overrides) -> LiteLLMProvider:
    from src.inference.config import InferenceConfig

    return LiteLLMProvider(InferenceConfig(_env_file=None, **overrides))  # type: ignore[call-arg]


class TestLiteLLMProvider:
    @pytest.mark.asyncio
    async def test_complete_returns_text_and_usage(self, monkeypatch) -> None:
        mock = AsyncMock(return_value=_DummyResponse(_DummyMessage('{"a": 1}'), _DummyUsage()))
        monkeypatch.setattr("src.inference.providers.acompletion", mock)

        reply = await _provider(llm_api_key="sk-test").complete(_request())

        assert reply.text == '{"a": 1}'
        assert reply.prompt_units == 120
        assert reply.completion_units == 40
        kwargs = mock.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 1000
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_complete_reads_tool_call_arguments(self, monkeypatch) -> None:
        message = _DummyMessage(None, tool_calls=[_DummyToolCall('{"b": 2}')])
        monkeypatch.setattr(
            "src.inference.providers.acompletion",
            AsyncMock(return_value=_DummyResponse(message)),
        )

        reply = await _provider().complete(_request())

        assert reply.text == '{"b": 2}'
        assert reply.prompt_units == 0

    @pytest.mark.asyncio
    async def test_empty_message_is_transient(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "src.inference.providers.acompletion",
            AsyncMock(return_value=_DummyResponse(_DummyMessage(None))),
        )

        with pytest.raises(TransientProviderError):
            await _provider().complete(_request())

    @pytest.mark.asyncio
    async def test_rate_limit_error_is_mapped(self, monkeypatch) -> None:
        error = RateLimitError(
            message="slow down",
            llm_provider="openai",
            model="gpt-4o",
        )
        monkeypatch.setattr("src.inference.providers.acompletion", AsyncMock(side_effect=error))

        with pytest.raises(RateLimitedError) as exc_info:
            await _provider().complete(_request())

        assert exc_info.value.original_error is error

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, monkeypatch) -> None:
        error = Timeout(message="timed out", model="gpt-4o", llm_provider="openai")
        monkeypatch.setattr("src.inference.providers.acompletion", AsyncMock(side_effect=error))

        with pytest.raises(TransientProviderError):
            await _provider().complete(_request())

    @pytest.mark.asyncio
    async def test_generic_429_message_is_rate_limited(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "src.inference.providers.acompletion",
            AsyncMock(side_effect=RuntimeError("HTTP 429 Too Many Requests")),
        )

        with pytest.raises(RateLimitedError):
            await _provider().complete(_request())

    @pytest.mark.asyncio
    async def test_other_errors_are_transient(self, monkeypatch) -> None:
        monkeypatch.setattr(
            "src.inference.providers.acompletion",
            AsyncMock(side_effect=RuntimeError("connection reset")),
        )

        with pytest.raises(TransientProviderError):
            await _provider().complete(_request())


class TestModelRouting:
    def test_openai_model_names_pass_through(self) -> None:
        assert _provider().get_model_name("gpt-4o") == "gpt-4o"

    def test_anthropic_models_are_prefixed(self) -> None:
        provider = _provider(llm_provider="anthropic")

        assert provider.get_model_name("claude-sonnet") == "anthropic/claude-sonnet"
        assert provider.get_model_name("anthropic/claude-sonnet") == "anthropic/claude-sonnet"

    def test_base_url_routes_through_openai_compatible_prefix(self) -> None:
        provider = _provider(llm_provider="ollama", llm_base_url="http://localhost:11434/v1")

        assert provider.get_model_name("llama3") == "openai/llama3"

    def test_other_providers_are_prefixed(self) -> None:
        provider = _provider(llm_provider="huggingface")

        assert provider.get_model_name("blenderbot") == "huggingface/blenderbot"
        assert provider.get_model_name("huggingface/facebook/x") == "huggingface/facebook/x"
