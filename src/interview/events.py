"""In-process event bus for interview observers.

Subscribers are called synchronously, in subscription order, on every publish.
Payloads are immutable snapshots, so a subscriber cannot reach back into
controller state.

Example:
    >>> bus = EventBus()
    >>> unsubscribe = bus.subscribe(lambda event: print(event.event_type))
    >>> bus.publish(Event(STATE_CHANGED, snapshot))
    >>> unsubscribe()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.inference.models import InferenceStatus
from src.inference.usage import BudgetAlert, CostWarning
from src.utils.logging import get_logger

logger = logging.getLogger(__name__)

STATE_CHANGED = "state_changed"
COST_WARNING = "cost_warning"
BUDGET_ALERT = "budget_alert"
STATUS = "status"


@dataclass(frozen=True)
class Event:
    """A single published event."""

    event_type: str
    payload: Any
    ts: float = field(default_factory=time.time)


Subscriber = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe channel."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a callable that unsubscribes it."""
        self._subscribers.append(subscriber)

        def _unsubscribe() -> None:
            self.unsubscribe(subscriber)

        return _unsubscribe

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._subscribers = [s for s in self._subscribers if s is not subscriber]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to every current subscriber.

        A failing subscriber is logged and skipped so one observer cannot
        break delivery to the others or the controller transition itself.
        """
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception("Event subscriber failed for %s", event.event_type)

    def publish_cost_warning(self, warning: CostWarning) -> None:
        self.publish(Event(COST_WARNING, warning))

    def publish_budget_alert(self, alert: BudgetAlert) -> None:
        self.publish(Event(BUDGET_ALERT, alert))

    def publish_status(self, status: InferenceStatus) -> None:
        self.publish(Event(STATUS, status))

    def queue(self, event_type: str | None = None) -> tuple[asyncio.Queue[Event], Callable[[], None]]:
        """Subscribe an ``asyncio.Queue`` (optionally filtered by event type).

        Returns the queue and its unsubscribe callable.
        """
        events: asyncio.Queue[Event] = asyncio.Queue()

        def _enqueue(event: Event) -> None:
            if event_type is None or event.event_type == event_type:
                events.put_nowait(event)

        return events, self.subscribe(_enqueue)


def attach_event_logger(bus: EventBus, log: logging.Logger | None = None) -> Callable[[], None]:
    """Subscribe a logging collaborator that records every event.

    Events go to the application's ``events`` logger unless ``log`` is given.
    """
    target = log or get_logger("events")

    def _log_event(event: Event) -> None:
        if event.event_type in (COST_WARNING, BUDGET_ALERT):
            target.warning(
                "%s: %s",
                event.event_type,
                getattr(event.payload, "message", event.payload),
            )
            return
        if event.event_type == STATUS:
            target.info("status: %s", getattr(event.payload, "message", event.payload))
            return
        phase = getattr(event.payload, "phase", None)
        turn_count = getattr(event.payload, "turn_count", None)
        target.info(
            "%s phase=%s turn=%s",
            event.event_type,
            getattr(phase, "value", phase),
            turn_count,
        )

    return bus.subscribe(_log_event)
