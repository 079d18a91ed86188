"""Tiered inference client.

Tries network tiers strictly in priority order (primary, secondary, optional
alternative) and ends with the deterministic fallback, so ``infer`` always
returns a usable result.

Per network tier:
    - rate-limited responses are retried on the same tier with capped
      exponential backoff;
    - any other transport failure (including a timeout) moves on to the
      next tier after a short fixed delay;
    - a transport success whose body cannot be normalized goes straight to
      the fallback tier without trying the remaining network tiers.

An optional ``on_status`` callback receives an ``InferenceStatus`` before every
attempt, before every backoff wait, when a tier gives up and when the fallback
answers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass

from pydantic import ValidationError

from src.inference import fallback
from src.inference.config import InferenceConfig, get_inference_config
from src.inference.models import (
    InferenceResult,
    InferenceStatus,
    PromptSpec,
    ResponseShape,
    StatusKind,
    TierId,
    UsageRecord,
)
from src.inference.normalizer import MalformedResponseError, normalize
from src.inference.providers import (
    LiteLLMProvider,
    Provider,
    ProviderReply,
    ProviderRequest,
    RateLimitedError,
    TransientProviderError,
)
from src.inference.usage import ParseMetrics, UsageMonitor

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
StatusCallback = Callable[[InferenceStatus], None]

NETWORK_TIER_ORDER: tuple[TierId, ...] = (
    TierId.PRIMARY,
    TierId.SECONDARY,
    TierId.ALTERNATIVE,
)


@dataclass(frozen=True)
class NetworkTier:
    tier_id: TierId
    model: str
    provider: Provider


class TieredInferenceClient:
    """Resolve a prompt into a validated Question or Analysis."""

    def __init__(
        self,
        config: InferenceConfig | None = None,
        *,
        providers: Mapping[TierId, Provider] | None = None,
        usage_monitor: UsageMonitor | None = None,
        parse_metrics: ParseMetrics | None = None,
        sleep: Sleep | None = None,
        on_status: StatusCallback | None = None,
    ) -> None:
        self.config = config or get_inference_config()
        self.usage_monitor = usage_monitor or UsageMonitor(
            warning_threshold=self.config.cost_warning_threshold,
            daily_budget=self.config.daily_budget,
        )
        self.parse_metrics = parse_metrics or ParseMetrics(
            window=self.config.parse_metrics_window
        )
        self._sleep: Sleep = sleep or asyncio.sleep
        self.on_status = on_status
        self._providers = dict(providers) if providers is not None else None
        self._tiers = self._build_tiers()

    def _build_tiers(self) -> list[NetworkTier]:
        models = {
            TierId.PRIMARY: self.config.primary_model,
            TierId.SECONDARY: self.config.secondary_model,
            TierId.ALTERNATIVE: self.config.alternative_model,
        }

        shared: Provider | None = None
        tiers: list[NetworkTier] = []
        for tier_id in NETWORK_TIER_ORDER:
            if tier_id == TierId.ALTERNATIVE and not self.config.alternative_enabled:
                continue
            if self._providers is not None:
                provider = self._providers.get(tier_id)
                if provider is None:
                    continue
            else:
                if shared is None:
                    shared = LiteLLMProvider(self.config)
                provider = shared
            tiers.append(NetworkTier(tier_id=tier_id, model=models[tier_id], provider=provider))
        return tiers

    @property
    def tiers(self) -> tuple[TierId, ...]:
        """Tier order this client will try, ending with the fallback tier."""
        if self.config.static_mode:
            return (TierId.FALLBACK,)
        return tuple(tier.tier_id for tier in self._tiers) + (TierId.FALLBACK,)

    async def infer(self, spec: PromptSpec, shape: ResponseShape) -> InferenceResult:
        """Run the tier chain for one prompt. Never raises."""
        started = time.monotonic()
        usage: list[UsageRecord] = []

        if self.config.static_mode:
            logger.debug("Static mode enabled; answering %s from fallback", spec.kind.value)
            return self._fallback_result(
                spec, started, raw_text="", usage=usage, reason="static mode"
            )

        for tier in self._tiers:
            reply = await self._call_tier(tier, spec)
            if reply is None:
                continue

            estimate = self.usage_monitor.record(
                tier.tier_id.value,
                reply.prompt_units,
                reply.completion_units,
                model=tier.model,
            )
            usage.append(estimate.record)

            try:
                payload = self._parse(reply.text, spec, shape)
            except MalformedResponseError as e:
                self.parse_metrics.record(False)
                logger.warning(
                    "Unparsable %s response from %s tier (success rate %.1f%%): %s | %r",
                    shape.name,
                    tier.tier_id.value,
                    self.parse_metrics.success_rate * 100,
                    e,
                    reply.text[:200],
                )
                return self._fallback_result(
                    spec,
                    started,
                    raw_text=reply.text,
                    usage=usage,
                    reason=f"unparsable {tier.tier_id.value} response",
                )

            self.parse_metrics.record(True)
            logger.info(
                "%s generated by %s tier (success rate %.1f%%)",
                shape.name,
                tier.tier_id.value,
                self.parse_metrics.success_rate * 100,
            )
            return InferenceResult(
                tier_used=tier.tier_id,
                raw_text=reply.text,
                payload=payload,
                parse_succeeded=True,
                latency_seconds=time.monotonic() - started,
                usage=tuple(usage),
            )

        logger.warning("All network tiers failed for %s; using fallback", spec.kind.value)
        return self._fallback_result(
            spec, started, raw_text="", usage=usage, reason="all network tiers failed"
        )

    async def _call_tier(self, tier: NetworkTier, spec: PromptSpec) -> ProviderReply | None:
        request = ProviderRequest(
            model=tier.model,
            messages=spec.messages,
            temperature=self.config.temperature,
            max_output_units=spec.max_output_units,
        )

        retries = self.config.rate_limit_retries
        for attempt in range(retries + 1):
            self._emit(
                StatusKind.ATTEMPT,
                tier.tier_id,
                spec,
                attempt=attempt + 1,
                max_attempts=retries + 1,
            )
            try:
                return await asyncio.wait_for(
                    tier.provider.complete(request), timeout=self.config.timeout
                )

            except RateLimitedError as e:
                if attempt < retries:
                    delay = self.config.backoff_delay(attempt)
                    logger.warning(
                        "%s tier rate limited (attempt %s), retrying in %.1fs",
                        tier.tier_id.value,
                        attempt + 1,
                        delay,
                    )
                    self._emit(
                        StatusKind.BACKOFF,
                        tier.tier_id,
                        spec,
                        attempt=attempt + 1,
                        max_attempts=retries + 1,
                        delay=delay,
                    )
                    await self._sleep(delay)
                    continue
                logger.warning(
                    "%s tier still rate limited after %s attempts: %s",
                    tier.tier_id.value,
                    attempt + 1,
                    e,
                )
                self._emit(
                    StatusKind.TIER_FAILED,
                    tier.tier_id,
                    spec,
                    attempt=attempt + 1,
                    max_attempts=retries + 1,
                    reason=f"rate limited after {attempt + 1} attempts",
                )
                return None

            except Exception as e:
                # TimeoutError, TransientProviderError, or anything a provider leaks.
                if not isinstance(e, (TimeoutError, TransientProviderError)):
                    logger.debug("Unexpected provider error type", exc_info=True)
                reason = "timed out" if isinstance(e, TimeoutError) else f"failed: {e}"
                logger.warning(
                    "%s tier %s; moving on in %.1fs",
                    tier.tier_id.value,
                    reason,
                    self.config.transport_error_delay,
                )
                self._emit(
                    StatusKind.TIER_FAILED,
                    tier.tier_id,
                    spec,
                    attempt=attempt + 1,
                    max_attempts=retries + 1,
                    delay=self.config.transport_error_delay,
                    reason=reason,
                )
                await self._sleep(self.config.transport_error_delay)
                return None

        return None

    def _emit(self, kind: StatusKind, tier_id: TierId, spec: PromptSpec, **details) -> None:
        if self.on_status is None:
            return
        status = InferenceStatus(kind=kind, tier_id=tier_id, prompt_kind=spec.kind, **details)
        try:
            self.on_status(status)
        except Exception:
            logger.exception("Status callback failed for %s", status.message)

    def _parse(self, raw_text: str, spec: PromptSpec, shape: ResponseShape):
        normalized = normalize(raw_text, shape.required_fields, shape.defaults)
        if not normalized.ok:
            raise MalformedResponseError(normalized.error or "normalization failed")

        overrides = {"id": spec.question_id} if spec.question_id else {}
        try:
            return shape.build(normalized.record, **overrides)
        except ValidationError as e:
            raise MalformedResponseError(
                f"{shape.name} failed validation: {e.error_count()} error(s)", e
            ) from e

    def _fallback_result(
        self,
        spec: PromptSpec,
        started: float,
        *,
        raw_text: str,
        usage: list[UsageRecord],
        reason: str,
    ) -> InferenceResult:
        self._emit(StatusKind.FALLBACK, TierId.FALLBACK, spec, reason=reason)
        return InferenceResult(
            tier_used=TierId.FALLBACK,
            raw_text=raw_text,
            payload=fallback.generate(spec),
            parse_succeeded=False,
            latency_seconds=time.monotonic() - started,
            usage=tuple(usage),
        )
