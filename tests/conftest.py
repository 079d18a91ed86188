"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Iterable

import pytest

# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from src.inference.providers import ProviderReply, ProviderRequest, RateLimitedError


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Keep logging and config singletons from leaking between tests."""
    from src.config.settings import reset_settings
    from src.inference.config import reset_inference_config
    from src.utils.logging import reset_logging

    reset_logging()
    reset_settings()
    reset_inference_config()
    yield
    reset_logging()
    reset_settings()
    reset_inference_config()


class ScriptedProvider:
    """Provider that plays back a fixed script of replies and exceptions.

    Each script entry is either a ``str`` (returned as the body), a
    ``ProviderReply``, or an ``Exception`` instance (raised). The last entry
    repeats once the script is exhausted.
    """

    def __init__(self, script: Iterable[object], *, prompt_units: int = 100, completion_units: int = 50):
        self.script = list(script)
        self.prompt_units = prompt_units
        self.completion_units = completion_units
        self.requests: list[ProviderRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: ProviderRequest) -> ProviderReply:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, ProviderReply):
            return step
        return ProviderReply(
            text=str(step),
            prompt_units=self.prompt_units,
            completion_units=self.completion_units,
        )


class BlockingProvider:
    """Provider that waits until released, then returns ``body``."""

    def __init__(self, body: str):
        self.body = body
        self.release = asyncio.Event()
        self.calls = 0

    async def complete(self, request: ProviderRequest) -> ProviderReply:  # noqa: ARG002
        self.calls += 1
        await self.release.wait()
        return ProviderReply(text=self.body, prompt_units=10, completion_units=10)


class RecordingSleep:
    """Drop-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def question_body(question: str = "Which region do you focus on?", options: list[str] | None = None) -> str:
    return json.dumps(
        {
            "question": question,
            "purpose": "Narrow the market",
            "options": options or ["Seoul", "Busan", "Nationwide", "other"],
            "customPlaceholder": "Name the region",
        }
    )


def analysis_body(score: object = 72) -> str:
    return json.dumps(
        {
            "expertiseScore": score,
            "personalizedInsight": "Deep regional knowledge",
            "businessHint": "Real estate x AI valuation assistant",
            "keyStrengths": ["Local network", "Pricing intuition"],
        }
    )


@pytest.fixture
def inference_config():
    """Inference config isolated from the environment with no real delays."""
    from src.inference.config import InferenceConfig

    return InferenceConfig(_env_file=None, timeout=1.0)  # type: ignore[call-arg]


@pytest.fixture
def static_config():
    from src.inference.config import InferenceConfig

    return InferenceConfig(_env_file=None, static_mode=True)  # type: ignore[call-arg]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def rate_limited() -> RateLimitedError:
    return RateLimitedError("429 Too Many Requests")


@pytest.fixture
def make_provider():
    """Factory for ``ScriptedProvider`` instances."""
    return ScriptedProvider


@pytest.fixture
def make_blocking_provider():
    """Factory for ``BlockingProvider`` instances."""
    return BlockingProvider


@pytest.fixture
def make_question_body():
    return question_body


@pytest.fixture
def make_analysis_body():
    return analysis_body
