"""Provider adapters used by the network tiers.

Each adapter turns a ``ProviderRequest`` into raw text plus usage counters and
maps provider failures onto the two signals the tiered client understands:
``RateLimitedError`` (retry the same tier) and ``TransientProviderError``
(move on to the next tier).
"""

from __future__ import annotations

import logging
import os
import warnings
from dataclasses import dataclass, field
from typing import Any, Protocol

from litellm import acompletion
from litellm.exceptions import RateLimitError, Timeout

from src.inference.config import InferenceConfig

logger = logging.getLogger(__name__)

warnings.filterwarnings(
    "ignore",
    message=r"(?s)^Pydantic serializer warnings:.*",
    category=UserWarning,
)

# LiteLLM loads `.env` into process environment by default (DEV mode).
os.environ.setdefault("LITELLM_MODE", "PRODUCTION")


class ProviderError(Exception):
    """Base class for provider call failures."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class RateLimitedError(ProviderError):
    """The provider asked us to slow down (HTTP 429)."""


class TransientProviderError(ProviderError):
    """Timeouts, 5xx, malformed envelopes and any other transport failure."""


@dataclass(frozen=True)
class ProviderRequest:
    model: str
    messages: tuple[dict[str, str], ...]
    temperature: float = 0.7
    max_output_units: int = 1000
    response_format: dict[str, str] | None = field(
        default_factory=lambda: {"type": "json_object"}
    )


@dataclass(frozen=True)
class ProviderReply:
    text: str
    prompt_units: int = 0
    completion_units: int = 0


class Provider(Protocol):
    async def complete(self, request: ProviderRequest) -> ProviderReply: ...


class LiteLLMProvider:
    """Chat-completion provider backed by LiteLLM."""

    def __init__(self, config: InferenceConfig) -> None:
        self.config = config
        self._setup_provider_env()

    def _setup_provider_env(self) -> None:
        """Set up provider-specific environment variables."""
        if self.config.llm_base_url and self.config.llm_provider == "anthropic":
            base_url = self.config.llm_base_url.rstrip("/")
            if base_url.endswith("/v1"):
                base_url = base_url[:-3]
            os.environ["ANTHROPIC_BASE_URL"] = base_url
            if self.config.llm_api_key:
                os.environ["ANTHROPIC_API_KEY"] = self.config.llm_api_key

    def get_model_name(self, model: str) -> str:
        """Return provider-qualified model name for LiteLLM routing."""
        if self.config.llm_provider == "anthropic":
            if "/" in model:
                return model
            return f"anthropic/{model}"

        if self.config.llm_base_url:
            if "/" in model:
                return model
            return f"openai/{model}"

        if self.config.llm_provider == "openai":
            return model

        if "/" in model:
            return model
        return f"{self.config.llm_provider}/{model}"

    async def complete(self, request: ProviderRequest) -> ProviderReply:
        kwargs: dict[str, Any] = {
            "model": self.get_model_name(request.model),
            "messages": list(request.messages),
            "temperature": request.temperature,
            "max_tokens": request.max_output_units,
            "timeout": self.config.timeout,
        }

        if self.config.llm_api_key:
            kwargs["api_key"] = self.config.llm_api_key

        if self.config.llm_base_url and self.config.llm_provider != "anthropic":
            kwargs["base_url"] = self.config.llm_base_url

        if request.response_format is not None:
            kwargs["response_format"] = request.response_format

        try:
            response = await acompletion(**kwargs)
        except RateLimitError as e:
            raise RateLimitedError(f"{request.model} rate limited: {e}", e) from e
        except Timeout as e:
            raise TransientProviderError(f"{request.model} timed out: {e}", e) from e
        except Exception as e:
            if _looks_rate_limited(e):
                raise RateLimitedError(f"{request.model} rate limited: {e}", e) from e
            raise TransientProviderError(f"{request.model} call failed: {e}", e) from e

        return self._parse_reply(response, request.model)

    def _parse_reply(self, response: Any, model: str) -> ProviderReply:
        try:
            message = response.choices[0].message
        except (AttributeError, IndexError, TypeError) as e:
            raise TransientProviderError(
                f"Invalid response envelope from {model}", e
            ) from e

        content = getattr(message, "content", None)

        # Some providers return structured output as tool call arguments with no content.
        if content is None:
            tool_calls = getattr(message, "tool_calls", None) or []
            if tool_calls:
                function = getattr(tool_calls[0], "function", None)
                arguments = getattr(function, "arguments", None)
                if isinstance(arguments, str) and arguments.strip():
                    content = arguments

        if content is None:
            raise TransientProviderError(f"{model} returned no content")

        usage = getattr(response, "usage", None)
        prompt_units = int(getattr(usage, "prompt_tokens", 0) or 0)
        completion_units = int(getattr(usage, "completion_tokens", 0) or 0)

        return ProviderReply(
            text=str(content),
            prompt_units=prompt_units,
            completion_units=completion_units,
        )


def _looks_rate_limited(error: Exception) -> bool:
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error).lower()
    return "rate_limit" in message or "429" in message
