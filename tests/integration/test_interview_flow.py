"""End-to-end interview flow across the controller, client and fallback tier."""

from __future__ import annotations

import pytest

from src.inference.client import TieredInferenceClient
from src.inference.models import OTHER_OPTION, TierId
from src.inference.providers import TransientProviderError
from src.interview.events import STATE_CHANGED
from src.interview.models import ControllerPhase
from src.interview.service import InterviewService, Reply


@pytest.mark.asyncio
async def test_mixed_network_and_fallback_interview(
    inference_config, make_provider, make_question_body, make_analysis_body, recording_sleep
) -> None:
    """Network questions early, an outage mid-interview, then a network analysis."""
    bodies = [
        make_question_body("What is your main field?", ["Real estate", "Finance", "Education"]),
        make_question_body("Which region?", ["Seoul", "Busan"]),
        TransientProviderError("outage"),
        TransientProviderError("outage"),
        make_question_body("Monthly revenue goal?", ["$5,000", "$10,000"]),
        make_question_body("Launch within how many months?", ["3", "6"]),
        make_analysis_body(78),
    ]
    primary = make_provider(bodies)
    client = TieredInferenceClient(
        inference_config, providers={TierId.PRIMARY: primary}, sleep=recording_sleep
    )
    service = InterviewService(client=client)
    controller = service.new_controller()
    asked: list[str] = []

    async def _responder(question) -> Reply:
        asked.append(question.prompt_text)
        if question.prompt_text == "Monthly revenue goal?":
            return Reply(selected_option="$5,000")
        if question.prompt_text == "Launch within how many months?":
            return Reply(selected_option=OTHER_OPTION, custom_text="Within 6 months")
        return Reply(selected_option=question.options[0])

    snapshots = [
        snapshot async for snapshot in service.run_interview(_responder, controller=controller)
    ]

    assert snapshots[-1].phase == ControllerPhase.COMPLETE
    exported = controller.export_answers()
    assert exported[1] == "Real estate"
    assert exported[2] == "Seoul"
    assert "Within 6 months" in exported.values()
    assert controller.turn_count == 6
    assert asked[2] == "Which part of your current work takes the most time?"
    assert asked[4] == "Monthly revenue goal?"
    assert recording_sleep.delays == [1.0, 1.0]

    result = await service.analyze(controller.export_for_analysis())

    assert result.tier_used == TierId.PRIMARY
    assert result.payload.expertise_score == 78
    assert client.usage_monitor.total_requests == 5
    assert client.parse_metrics.success_rate == 1.0


@pytest.mark.asyncio
async def test_fully_offline_interview_and_analysis(static_config) -> None:
    service = InterviewService(static_config)
    states: list[ControllerPhase] = []
    service.bus.subscribe(
        lambda event: states.append(event.payload.phase) if event.event_type == STATE_CHANGED else None
    )

    async def _responder(question) -> Reply:
        return Reply(selected_option=question.options[0])

    controller = service.new_controller()
    async for _snapshot in service.run_interview(_responder, controller=controller):
        pass
    result = await service.analyze(controller.export_for_analysis())

    assert states[0] == ControllerPhase.AWAITING_FIRST_QUESTION
    assert states[-1] == ControllerPhase.COMPLETE
    assert result.used_fallback is True
    assert "Real estate (brokerage, investment, consulting)" in result.payload.business_hint
