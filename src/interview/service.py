"""Consumer-facing interview service.

Wires the tiered inference client, event bus and controller together, runs a
whole interview against a responder, and produces the final analysis.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass

from src.inference.client import TieredInferenceClient
from src.inference.config import InferenceConfig, get_inference_config
from src.inference.models import ANALYSIS_SHAPE, InferenceResult, Question
from src.inference.usage import UsageMonitor
from src.interview.controller import ConversationController
from src.interview.events import STATE_CHANGED, EventBus
from src.interview.models import ControllerPhase, ConversationSnapshot
from src.interview.prompts import build_analysis_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reply:
    """A respondent's reply to one question."""

    selected_option: str | None = None
    custom_text: str | None = None


Responder = Callable[[Question], Awaitable[Reply]]


class InterviewService:
    """Run interviews and analyze their answers."""

    def __init__(
        self,
        config: InferenceConfig | None = None,
        *,
        client: TieredInferenceClient | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.config = config or (client.config if client else get_inference_config())
        self.bus = bus or EventBus()
        if client is None:
            client = TieredInferenceClient(
                self.config,
                usage_monitor=UsageMonitor(
                    warning_threshold=self.config.cost_warning_threshold,
                    on_warning=self.bus.publish_cost_warning,
                    daily_budget=self.config.daily_budget,
                    on_budget_alert=self.bus.publish_budget_alert,
                ),
                on_status=self.bus.publish_status,
            )
        else:
            if client.usage_monitor.on_warning is None:
                client.usage_monitor.on_warning = self.bus.publish_cost_warning
            if client.usage_monitor.on_budget_alert is None:
                client.usage_monitor.on_budget_alert = self.bus.publish_budget_alert
            if client.on_status is None:
                client.on_status = self.bus.publish_status
        self.client = client

    def new_controller(self) -> ConversationController:
        return ConversationController(self.client, bus=self.bus, config=self.config)

    async def run_interview(
        self,
        responder: Responder,
        *,
        controller: ConversationController | None = None,
    ) -> AsyncIterator[ConversationSnapshot]:
        """Drive an interview to completion, yielding every state snapshot.

        ``responder`` is awaited with each open question and returns the reply
        to submit. The stream ends once the interview is complete or stopped.
        """
        controller = controller or self.new_controller()
        events, unsubscribe = self.bus.queue(STATE_CHANGED)
        try:
            await controller.start()
            while True:
                while not events.empty():
                    yield events.get_nowait().payload

                if controller.phase in {ControllerPhase.COMPLETE, ControllerPhase.STOPPED}:
                    break

                question = controller.current_question
                if question is None:
                    break
                reply = await responder(question)
                if controller.phase == ControllerPhase.STOPPED:
                    continue
                await controller.submit(reply.selected_option, reply.custom_text)
        finally:
            unsubscribe()

    async def analyze(self, answers: Mapping[str, str]) -> InferenceResult:
        """Produce an expertise analysis for exported answers."""
        logger.info("Starting expertise analysis (%s fields)", len(answers))
        result = await self.client.infer(
            build_analysis_prompt(answers, self.config), ANALYSIS_SHAPE
        )
        logger.info("Expertise analysis complete (tier=%s)", result.tier_used.value)
        return result
