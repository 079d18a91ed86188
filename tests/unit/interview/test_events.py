"""Tests for the interview event bus."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from src.inference.models import InferenceStatus, PromptKind, StatusKind, TierId
from src.inference.usage import BudgetAlert, BudgetLevel, CostWarning
from src.interview.events import (
    COST_WARNING,
    STATE_CHANGED,
    Event,
    EventBus,
    attach_event_logger,
)


def test_subscribers_receive_events_in_order() -> None:
    bus = EventBus()
    received: list[tuple[str, str]] = []
    bus.subscribe(lambda event: received.append(("first", event.event_type)))
    bus.subscribe(lambda event: received.append(("second", event.event_type)))

    bus.publish(Event(STATE_CHANGED, None))

    assert received == [("first", STATE_CHANGED), ("second", STATE_CHANGED)]


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: list[Event] = []
    unsubscribe = bus.subscribe(received.append)

    unsubscribe()
    bus.publish(Event(STATE_CHANGED, None))

    assert received == []
    assert bus.subscriber_count == 0


def test_failing_subscriber_does_not_block_others(caplog) -> None:
    bus = EventBus()
    received: list[Event] = []

    def _boom(event: Event) -> None:
        raise RuntimeError("observer bug")

    bus.subscribe(_boom)
    bus.subscribe(received.append)

    with caplog.at_level(logging.ERROR, logger="src.interview.events"):
        bus.publish(Event(STATE_CHANGED, None))

    assert len(received) == 1
    assert "Event subscriber failed" in caplog.text


def test_cost_warning_published_as_event() -> None:
    bus = EventBus()
    received: list[Event] = []
    bus.subscribe(received.append)
    warning = CostWarning(tier_id="primary", estimated_cost=0.2, threshold=0.1)

    bus.publish_cost_warning(warning)

    assert received[0].event_type == COST_WARNING
    assert received[0].payload is warning


@pytest.mark.asyncio
async def test_queue_filters_by_event_type() -> None:
    bus = EventBus()
    events, unsubscribe = bus.queue(STATE_CHANGED)

    bus.publish(Event(COST_WARNING, "ignored"))
    bus.publish(Event(STATE_CHANGED, "kept"))
    unsubscribe()
    bus.publish(Event(STATE_CHANGED, "after unsubscribe"))

    assert events.qsize() == 1
    assert (await events.get()).payload == "kept"


def test_event_logger_logs_transitions_and_warnings(caplog) -> None:
    bus = EventBus()
    log = logging.getLogger("test.events")
    attach_event_logger(bus, log)

    class _Snapshot:
        phase = None
        turn_count = 2

    with caplog.at_level(logging.INFO, logger="test.events"):
        bus.publish(Event(STATE_CHANGED, _Snapshot()))
        bus.publish_cost_warning(CostWarning("secondary", 0.5, 0.1))

    assert "state_changed phase=None turn=2" in caplog.text
    assert "High cost detected on tier secondary" in caplog.text


def test_event_logger_renders_status_and_budget_alerts(caplog) -> None:
    bus = EventBus()
    log = logging.getLogger("test.events")
    attach_event_logger(bus, log)
    status = InferenceStatus(
        kind=StatusKind.ATTEMPT,
        tier_id=TierId.SECONDARY,
        prompt_kind=PromptKind.NEXT_QUESTION,
        attempt=2,
        max_attempts=3,
    )
    alert = BudgetAlert(
        level=BudgetLevel.WARNING,
        day=date(2026, 3, 2),
        daily_cost=7.5,
        daily_budget=10.0,
    )

    with caplog.at_level(logging.INFO, logger="test.events"):
        bus.publish_status(status)
        bus.publish_budget_alert(alert)

    assert "status: secondary: attempt 2/3" in caplog.text
    assert "budget_alert: Daily budget 70% reached on 2026-03-02: $7.50 of $10.00" in caplog.text


def test_event_logger_defaults_to_application_logger(caplog) -> None:
    bus = EventBus()
    attach_event_logger(bus)

    with caplog.at_level(logging.WARNING, logger="expert_interview.events"):
        bus.publish_cost_warning(CostWarning("primary", 0.5, 0.1))

    assert [record.name for record in caplog.records] == ["expert_interview.events"]
