"""Data models for the tiered inference pipeline."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

OTHER_OPTION = "other"

# Localized or loosely-cased spellings of the open-ended option that providers emit.
_OTHER_ALIASES = {"other", "others", "기타", "etc", "etc."}

_SCORE_RE = re.compile(r"-?\d+(?:\.\d+)?")


class TierId(str, Enum):
    """Inference tiers in fixed priority order."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    ALTERNATIVE = "alternative"
    FALLBACK = "fallback"


class PromptKind(str, Enum):
    """What a prompt asks the provider to produce."""

    FIRST_QUESTION = "first_question"
    NEXT_QUESTION = "next_question"
    ANALYSIS = "analysis"


class Question(BaseModel):
    """A single interview question with a closed option list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default="", description="Question identifier (q1, q2, ...)")
    prompt_text: str = Field(..., min_length=1, alias="question")
    purpose_text: str = Field(default="", alias="purpose")
    options: tuple[str, ...] = Field(..., description="Ordered options ending in 'other'")
    custom_placeholder: str | None = Field(default=None, alias="customPlaceholder")

    @field_validator("purpose_text", mode="before")
    @classmethod
    def coerce_purpose(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("custom_placeholder", mode="before")
    @classmethod
    def blank_placeholder_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> tuple[str, ...]:
        """Keep real options in order and end with exactly one 'other' sentinel."""
        if isinstance(v, str) or not isinstance(v, (list, tuple)):
            raise ValueError("options must be a list of strings")

        options: list[str] = []
        for item in v:
            text = str(item).strip()
            if not text or text.lower() in _OTHER_ALIASES:
                continue
            if text not in options:
                options.append(text)

        if not options:
            raise ValueError("options must contain at least one concrete choice")

        options.append(OTHER_OPTION)
        return tuple(options)

    def to_dict(self) -> dict:
        """Serialize to the wire-shaped dictionary."""
        return self.model_dump(mode="json", by_alias=True)


class Analysis(BaseModel):
    """Expertise analysis produced at the end of an interview."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    expertise_score: int = Field(..., ge=0, le=100, alias="expertiseScore")
    personalized_insight: str = Field(..., min_length=1, alias="personalizedInsight")
    business_hint: str = Field(..., min_length=1, alias="businessHint")
    market_opportunity: str = Field(default="", alias="marketOpportunity")
    success_probability_text: str = Field(
        default="",
        validation_alias=AliasChoices(
            "successProbability", "successProbabilityText", "success_probability_text"
        ),
        serialization_alias="successProbability",
    )
    key_strengths: tuple[str, ...] = Field(default=(), alias="keyStrengths")
    next_step_teaser: str = Field(default="", alias="nextStepTeaser")
    exclusive_value: str = Field(default="", alias="exclusiveValue")
    urgency_factor: str = Field(default="", alias="urgencyFactor")

    @field_validator("expertise_score", mode="before")
    @classmethod
    def coerce_score(cls, v: Any) -> int:
        """Accept numbers or strings like '87' / '87%' and clamp to 0-100."""
        if isinstance(v, bool):
            raise ValueError("expertiseScore must be numeric")
        if isinstance(v, (int, float)):
            value = float(v)
        else:
            match = _SCORE_RE.search(str(v))
            if match is None:
                raise ValueError(f"expertiseScore is not numeric: {v!r}")
            value = float(match.group(0))
        return max(0, min(100, int(value)))

    @field_validator(
        "market_opportunity",
        "success_probability_text",
        "next_step_teaser",
        "exclusive_value",
        "urgency_factor",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("key_strengths", mode="before")
    @classmethod
    def coerce_strengths(cls, v: Any) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,) if v.strip() else ()
        return tuple(str(item) for item in v if str(item).strip())

    def to_dict(self) -> dict:
        """Serialize to the wire-shaped dictionary."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class ResponseShape:
    """Describes the structured record a prompt expects back."""

    name: str
    model: type[BaseModel]
    required_fields: frozenset[str]
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def build(self, record: Mapping[str, Any], **overrides: Any) -> BaseModel:
        """Validate a normalized record into the shape's model."""
        data = dict(record)
        data.update(overrides)
        return self.model.model_validate(data)


QUESTION_SHAPE = ResponseShape(
    name="question",
    model=Question,
    required_fields=frozenset({"question", "options"}),
    defaults={"purpose": "", "customPlaceholder": ""},
)

ANALYSIS_SHAPE = ResponseShape(
    name="analysis",
    model=Analysis,
    required_fields=frozenset({"expertiseScore", "personalizedInsight", "businessHint"}),
    defaults={
        "marketOpportunity": "",
        "successProbability": "",
        "keyStrengths": [],
        "nextStepTeaser": "",
        "exclusiveValue": "",
        "urgencyFactor": "",
    },
)


@dataclass(frozen=True)
class PromptSpec:
    """A fully assembled prompt plus the inputs the fallback tier keys off."""

    kind: PromptKind
    messages: tuple[dict[str, str], ...]
    max_output_units: int
    turn_count: int = 0
    question_id: str | None = None
    fallback_inputs: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValueError("messages must not be empty")
        if self.turn_count < 0:
            raise ValueError("turn_count must be >= 0")
        if self.kind != PromptKind.ANALYSIS and not self.question_id:
            raise ValueError("question prompts require a question_id")


@dataclass(frozen=True)
class UsageRecord:
    """Usage and estimated cost of one transport-successful provider call."""

    tier_id: str
    prompt_units: int
    completion_units: int
    estimated_cost: float
    model: str | None = None

    def __post_init__(self) -> None:
        if self.prompt_units < 0 or self.completion_units < 0:
            raise ValueError("usage units must be >= 0")
        if self.estimated_cost < 0:
            raise ValueError("estimated_cost must be >= 0")

    @property
    def total_units(self) -> int:
        return self.prompt_units + self.completion_units


@dataclass(frozen=True)
class InferenceResult:
    """Outcome of a tiered inference call."""

    tier_used: TierId
    raw_text: str
    payload: BaseModel
    parse_succeeded: bool
    latency_seconds: float
    usage: tuple[UsageRecord, ...] = ()

    def __post_init__(self) -> None:
        if self.latency_seconds < 0:
            raise ValueError("latency_seconds must be >= 0")

    @property
    def used_fallback(self) -> bool:
        return self.tier_used == TierId.FALLBACK

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier_used": self.tier_used.value,
            "parse_succeeded": self.parse_succeeded,
            "latency_seconds": round(self.latency_seconds, 3),
            "payload": self.payload.model_dump(mode="json", by_alias=True),
            "usage": [
                {
                    "tier_id": record.tier_id,
                    "model": record.model,
                    "prompt_units": record.prompt_units,
                    "completion_units": record.completion_units,
                    "estimated_cost": record.estimated_cost,
                }
                for record in self.usage
            ],
        }


class StatusKind(str, Enum):
    """Progress notifications the tiered client emits while resolving a prompt."""

    ATTEMPT = "attempt"
    BACKOFF = "backoff"
    TIER_FAILED = "tier_failed"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class InferenceStatus:
    """One progress notification from the tiered client."""

    kind: StatusKind
    tier_id: TierId
    prompt_kind: PromptKind
    attempt: int = 0
    max_attempts: int = 0
    delay: float = 0.0
    reason: str = ""

    @property
    def message(self) -> str:
        tier = self.tier_id.value
        if self.kind == StatusKind.ATTEMPT:
            return f"{tier}: attempt {self.attempt}/{self.max_attempts}"
        if self.kind == StatusKind.BACKOFF:
            return f"{tier}: rate limited, retrying in {self.delay:.1f}s"
        if self.kind == StatusKind.TIER_FAILED:
            return f"{tier}: {self.reason or 'failed'}"
        return f"using built-in {self.prompt_kind.value} ({self.reason or 'no network tier answered'})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "tier_id": self.tier_id.value,
            "prompt_kind": self.prompt_kind.value,
            "attempt": self.attempt,
            "max_attempts": self.max_attempts,
            "delay": self.delay,
            "reason": self.reason,
            "message": self.message,
        }
