"""Usage, cost and parse-quality accounting for provider calls.

Both monitors are plain instance-owned objects: each inference client gets its
own, so separate pipelines never share counters.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum

from src.inference.models import UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitRate:
    """USD cost per prompt and completion token."""

    prompt: float
    completion: float


DEFAULT_RATE_MODEL = "gpt-4o-mini"

DEFAULT_RATES: dict[str, UnitRate] = {
    "gpt-4o": UnitRate(prompt=0.005 / 1000, completion=0.015 / 1000),
    "gpt-4o-mini": UnitRate(prompt=0.00015 / 1000, completion=0.0006 / 1000),
}


@dataclass(frozen=True)
class CostWarning:
    """Signal that a single call cost more than the configured threshold."""

    tier_id: str
    estimated_cost: float
    threshold: float

    @property
    def message(self) -> str:
        return (
            f"High cost detected on tier {self.tier_id}: "
            f"${self.estimated_cost:.4f} > ${self.threshold:.4f}"
        )


BUDGET_WARNING_RATIO = 0.7
BUDGET_CRITICAL_RATIO = 0.9


class BudgetLevel(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class BudgetAlert:
    """Signal that today's accumulated cost crossed a share of the daily budget."""

    level: BudgetLevel
    day: date
    daily_cost: float
    daily_budget: float

    @property
    def ratio(self) -> float:
        if self.level == BudgetLevel.CRITICAL:
            return BUDGET_CRITICAL_RATIO
        return BUDGET_WARNING_RATIO

    @property
    def message(self) -> str:
        return (
            f"Daily budget {int(self.ratio * 100)}% reached on {self.day.isoformat()}: "
            f"${self.daily_cost:.2f} of ${self.daily_budget:.2f}"
        )


@dataclass
class DailyUsage:
    """Per-day aggregate of recorded calls."""

    requests: int = 0
    prompt_units: int = 0
    completion_units: int = 0
    cost: float = 0.0


@dataclass(frozen=True)
class CostEstimate:
    """What ``UsageMonitor.record`` hands back for one call."""

    record: UsageRecord
    warning: CostWarning | None = None
    budget_alert: BudgetAlert | None = None

    @property
    def estimated_cost(self) -> float:
        return self.record.estimated_cost


class UsageMonitor:
    """Estimates per-call cost and keeps running totals for observability.

    With a ``daily_budget`` set, calls are also aggregated per UTC day and a
    ``BudgetAlert`` is raised the first time a day's cost reaches 70% (warning)
    and again at 90% (critical) of the budget.
    """

    def __init__(
        self,
        *,
        warning_threshold: float = 0.1,
        rates: Mapping[str, UnitRate] | None = None,
        on_warning: Callable[[CostWarning], None] | None = None,
        daily_budget: float | None = None,
        on_budget_alert: Callable[[BudgetAlert], None] | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        if warning_threshold < 0:
            raise ValueError("warning_threshold must be >= 0")
        if daily_budget is not None and daily_budget <= 0:
            raise ValueError("daily_budget must be > 0")
        self.warning_threshold = warning_threshold
        self.rates = dict(rates) if rates is not None else dict(DEFAULT_RATES)
        self.on_warning = on_warning
        self.daily_budget = daily_budget
        self.on_budget_alert = on_budget_alert
        self._today = today or (lambda: datetime.now(UTC).date())
        self.records: list[UsageRecord] = []
        self.daily: dict[date, DailyUsage] = {}
        self._alerted: dict[date, BudgetLevel] = {}
        self.total_prompt_units = 0
        self.total_completion_units = 0
        self.total_cost = 0.0

    def rate_for(self, key: str | None) -> UnitRate:
        if key and key in self.rates:
            return self.rates[key]
        return self.rates.get(DEFAULT_RATE_MODEL, DEFAULT_RATES[DEFAULT_RATE_MODEL])

    def estimate_cost(
        self, prompt_units: int, completion_units: int, *, model: str | None = None
    ) -> float:
        rate = self.rate_for(model)
        return prompt_units * rate.prompt + completion_units * rate.completion

    def record(
        self,
        tier_id: str,
        prompt_units: int,
        completion_units: int,
        *,
        model: str | None = None,
    ) -> CostEstimate:
        """Record one call and return its cost estimate (plus a warning if costly)."""
        prompt_units = max(0, int(prompt_units or 0))
        completion_units = max(0, int(completion_units or 0))
        cost = self.estimate_cost(
            prompt_units, completion_units, model=model or str(tier_id)
        )

        usage = UsageRecord(
            tier_id=str(tier_id),
            model=model,
            prompt_units=prompt_units,
            completion_units=completion_units,
            estimated_cost=cost,
        )
        self.records.append(usage)
        self.total_prompt_units += prompt_units
        self.total_completion_units += completion_units
        self.total_cost += cost

        logger.info(
            "%s usage: %s tokens, ~$%.4f",
            model or tier_id,
            usage.total_units,
            cost,
        )

        warning: CostWarning | None = None
        if cost > self.warning_threshold:
            warning = CostWarning(
                tier_id=str(tier_id),
                estimated_cost=cost,
                threshold=self.warning_threshold,
            )
            logger.warning(warning.message)
            if self.on_warning is not None:
                self.on_warning(warning)

        budget_alert = self._track_day(usage)

        return CostEstimate(record=usage, warning=warning, budget_alert=budget_alert)

    def _track_day(self, usage: UsageRecord) -> BudgetAlert | None:
        day = self._today()
        totals = self.daily.setdefault(day, DailyUsage())
        totals.requests += 1
        totals.prompt_units += usage.prompt_units
        totals.completion_units += usage.completion_units
        totals.cost += usage.estimated_cost

        if self.daily_budget is None:
            return None
        if totals.cost >= self.daily_budget * BUDGET_CRITICAL_RATIO:
            level = BudgetLevel.CRITICAL
        elif totals.cost >= self.daily_budget * BUDGET_WARNING_RATIO:
            level = BudgetLevel.WARNING
        else:
            return None

        previous = self._alerted.get(day)
        if previous == level or previous == BudgetLevel.CRITICAL:
            return None
        self._alerted[day] = level

        alert = BudgetAlert(
            level=level,
            day=day,
            daily_cost=totals.cost,
            daily_budget=self.daily_budget,
        )
        logger.warning(alert.message)
        if self.on_budget_alert is not None:
            self.on_budget_alert(alert)
        return alert

    @property
    def total_requests(self) -> int:
        return len(self.records)

    def today_usage(self) -> DailyUsage:
        return self.daily.get(self._today(), DailyUsage())

    def summary(self) -> dict[str, float | int]:
        summary: dict[str, float | int] = {
            "total_requests": self.total_requests,
            "total_prompt_units": self.total_prompt_units,
            "total_completion_units": self.total_completion_units,
            "total_cost": round(self.total_cost, 6),
        }
        if self.daily_budget is not None:
            summary["daily_budget"] = self.daily_budget
            summary["today_cost"] = round(self.today_usage().cost, 6)
        return summary


class ParseMetrics:
    """Rolling success rate of normalizing transport-successful responses."""

    def __init__(self, window: int = 100) -> None:
        if window <= 0:
            raise ValueError("window must be > 0")
        self._outcomes: deque[bool] = deque(maxlen=window)
        self.total_successes = 0
        self.total_failures = 0

    def record(self, succeeded: bool) -> None:
        self._outcomes.append(succeeded)
        if succeeded:
            self.total_successes += 1
        else:
            self.total_failures += 1

    @property
    def successes(self) -> int:
        return sum(1 for outcome in self._outcomes if outcome)

    @property
    def attempts(self) -> int:
        return len(self._outcomes)

    @property
    def success_rate(self) -> float:
        """Share of recent parses that succeeded (1.0 before any attempt)."""
        if not self._outcomes:
            return 1.0
        return self.successes / self.attempts
