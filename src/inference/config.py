"""Configuration settings for the tiered inference pipeline.

Provides provider/model settings per tier, retry and backoff policy, timeouts,
the cost warning threshold and the optional daily budget used by the usage
monitor.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InferenceConfig(BaseSettings):
    """Configuration for the tiered inference client.

    Settings can be overridden via environment variables prefixed with
    INFERENCE_ or a .env file.

    Example: INFERENCE_PRIMARY_MODEL=gpt-4o
    """

    model_config = SettingsConfigDict(
        env_prefix="INFERENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider settings
    llm_provider: str = Field(
        default="openai",
        description="LLM provider (openai, anthropic, azure, etc.)",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="API key for LLM provider",
    )
    llm_base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible endpoints",
    )

    # Tier models
    primary_model: str = Field(
        default="gpt-4o",
        description="Model used by the primary tier",
    )
    secondary_model: str = Field(
        default="gpt-4o-mini",
        description="Cheaper model used by the secondary tier",
    )
    alternative_enabled: bool = Field(
        default=False,
        description="Enable the alternative-provider tier between secondary and fallback",
    )
    alternative_model: str = Field(
        default="huggingface/facebook/blenderbot-400M-distill",
        description="Provider-qualified model used by the alternative tier",
    )
    static_mode: bool = Field(
        default=False,
        description="Skip every network tier and answer from the deterministic fallback",
    )

    # Request shaping
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = Field(
        default=0.7,
        description="Sampling temperature for provider calls",
    )
    question_max_output_units: Annotated[int, Field(gt=0)] = Field(
        default=1000,
        description="Max output tokens for question generation",
    )
    analysis_max_output_units: Annotated[int, Field(gt=0)] = Field(
        default=2000,
        description="Max output tokens for expertise analysis",
    )

    # Retry / timeout policy
    rate_limit_retries: Annotated[int, Field(ge=0)] = Field(
        default=2,
        description="Same-tier retries allowed after a rate-limited response",
    )
    backoff_base: Annotated[float, Field(ge=0.0)] = Field(
        default=2.0,
        description="Base delay in seconds for rate-limit backoff (doubles per attempt)",
    )
    backoff_ceiling: Annotated[float, Field(ge=0.0)] = Field(
        default=10.0,
        description="Maximum delay in seconds for rate-limit backoff",
    )
    transport_error_delay: Annotated[float, Field(ge=0.0)] = Field(
        default=1.0,
        description="Delay in seconds before moving to the next tier after a transport error",
    )
    timeout: Annotated[float, Field(gt=0)] = Field(
        default=8.0,
        description="Timeout in seconds for a single provider attempt",
    )

    # Observability
    cost_warning_threshold: Annotated[float, Field(ge=0.0)] = Field(
        default=0.1,
        description="Per-call estimated cost (USD) above which a warning is emitted",
    )
    parse_metrics_window: Annotated[int, Field(gt=0)] = Field(
        default=100,
        description="Number of recent parse outcomes used for the rolling success rate",
    )
    daily_budget: Annotated[float, Field(gt=0.0)] | None = Field(
        default=None,
        description="Daily spend (USD) that triggers budget alerts at 70% and 90%; unset disables them",
    )

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Lower-case and strip the provider name."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("llm_provider must be a non-empty string")
        return v.strip().lower()

    @model_validator(mode="after")
    def validate_backoff_window(self) -> InferenceConfig:
        """Ensure the backoff ceiling is not below its base."""
        if self.backoff_ceiling < self.backoff_base:
            raise ValueError(
                "backoff_ceiling must be >= backoff_base "
                f"(got base={self.backoff_base}, ceiling={self.backoff_ceiling})."
            )
        return self

    def backoff_delay(self, attempt: int) -> float:
        """Capped exponential delay for the given zero-based attempt."""
        return min(self.backoff_base * (2**attempt), self.backoff_ceiling)


# Singleton instance for easy import
_inference_config: InferenceConfig | None = None


def get_inference_config() -> InferenceConfig:
    """Get the inference configuration singleton."""
    global _inference_config
    if _inference_config is None:
        _inference_config = InferenceConfig()
    return _inference_config


def reset_inference_config() -> None:
    """Reset the configuration singleton (useful for testing)."""
    global _inference_config
    _inference_config = None
