"""Conversation controller: the interview state machine.

Owns the conversation state and is the only thing that mutates it. Every
transition publishes a ``ConversationSnapshot`` on the event bus.

Transitions:
    start():  IDLE -> AWAITING_FIRST_QUESTION -> AWAITING_ANSWER
    submit(): AWAITING_ANSWER -> GENERATING_NEXT -> AWAITING_ANSWER | COMPLETE
    stop():   any active phase -> STOPPED

The controller serves one in-flight operation at a time; overlapping calls
raise ``ConversationBusyError``.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

from src.inference.client import TieredInferenceClient
from src.inference.config import InferenceConfig
from src.inference.models import QUESTION_SHAPE, Question
from src.interview.context import infer_context
from src.interview.errors import ConversationBusyError, ValidationError
from src.interview.events import STATE_CHANGED, Event, EventBus, Subscriber
from src.interview.models import (
    Answer,
    ControllerPhase,
    ConversationSnapshot,
    Progress,
)
from src.interview.policy import estimate_progress, is_done
from src.interview.prompts import (
    build_first_question_prompt,
    build_next_question_prompt,
)

logger = logging.getLogger(__name__)


class ConversationController:
    """Drives one interview from the first question to completion."""

    def __init__(
        self,
        client: TieredInferenceClient,
        *,
        bus: EventBus | None = None,
        config: InferenceConfig | None = None,
    ) -> None:
        self.client = client
        self.config = config or client.config
        self.bus = bus or EventBus()

        self._phase = ControllerPhase.IDLE
        self._answers: list[Answer] = []
        self._current_question: Question | None = None
        self._question_history: list[str] = []
        self._turn_count = 0
        self._done = False
        self._started_at: datetime | None = None
        self._started_monotonic = 0.0
        self._busy = False

    # -- observers -------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        return self.bus.subscribe(subscriber)

    def snapshot(self) -> ConversationSnapshot:
        context = infer_context(self._answers, self._turn_count)
        return ConversationSnapshot(
            phase=self._phase,
            answers=tuple(self._answers),
            current_question=self._current_question,
            turn_count=self._turn_count,
            done=self._done,
            started_at=self._started_at,
            coverage_tags=context.coverage_tags,
            focus_phase=context.focus_phase,
        )

    def _transition(self, phase: ControllerPhase) -> None:
        self._phase = phase
        self.bus.publish(Event(STATE_CHANGED, self.snapshot()))

    @contextlib.contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        if self._busy:
            raise ConversationBusyError(
                f"Cannot {operation} while another operation is in progress"
            )
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # -- properties ------------------------------------------------------

    @property
    def phase(self) -> ControllerPhase:
        return self._phase

    @property
    def turn_count(self) -> int:
        return self._turn_count

    @property
    def done(self) -> bool:
        return self._done

    @property
    def current_question(self) -> Question | None:
        return self._current_question

    @property
    def busy(self) -> bool:
        return self._busy

    def progress(self) -> Progress:
        return estimate_progress(self._turn_count)

    # -- operations ------------------------------------------------------

    async def start(self) -> Question:
        """Begin a new interview and return the first question."""
        with self._guard("start"):
            logger.info("Starting interview")
            self._answers = []
            self._question_history = []
            self._current_question = None
            self._turn_count = 0
            self._done = False
            self._started_at = datetime.now(UTC)
            self._started_monotonic = time.monotonic()
            self._transition(ControllerPhase.AWAITING_FIRST_QUESTION)

            result = await self.client.infer(
                build_first_question_prompt(self.config), QUESTION_SHAPE
            )
            question = result.payload
            self._set_question(question)
            logger.info("First question ready (tier=%s): %s", result.tier_used.value, question.prompt_text)
            self._transition(ControllerPhase.AWAITING_ANSWER)
            return question

    async def submit(
        self,
        selected_option: str | None = None,
        custom_text: str | None = None,
    ) -> Question | None:
        """Record an answer and advance.

        Returns the next question, or ``None`` once the interview is complete.

        Raises:
            ValidationError: The answer is invalid or no question is open.
                State is left unchanged.
        """
        with self._guard("submit"):
            answer = self._validate_submission(selected_option, custom_text)

            self._answers.append(answer)
            self._turn_count += 1
            logger.info("Answer %s recorded: %s", self._turn_count, answer.final_answer)
            self._transition(ControllerPhase.GENERATING_NEXT)

            context = infer_context(self._answers, self._turn_count)
            if is_done(self._turn_count, context.coverage_tags):
                self._complete()
                return None

            spec = build_next_question_prompt(
                answers=self._answers,
                question_history=self._question_history,
                context=context,
                turn_count=self._turn_count,
                config=self.config,
            )
            result = await self.client.infer(spec, QUESTION_SHAPE)
            question = result.payload
            self._set_question(question)
            logger.info(
                "Question %s ready (tier=%s): %s",
                self._turn_count + 1,
                result.tier_used.value,
                question.prompt_text,
            )
            self._transition(ControllerPhase.AWAITING_ANSWER)
            return question

    async def go_to_previous(self) -> Question | None:
        """Reopen the previous turn.

        Drops the last answer and asks a question for that turn again. The
        new question is generated from the remaining answers, so it may
        differ from the one originally asked; this is not a true undo.
        """
        with self._guard("go back"):
            if self._phase in {ControllerPhase.COMPLETE, ControllerPhase.STOPPED}:
                raise ValidationError("The interview has ended")
            if not self._answers:
                return self._current_question

            self._answers.pop()
            self._turn_count -= 1
            # Forget both the open question and the one being reopened.
            del self._question_history[-2:]
            logger.info("Going back to question %s", self._turn_count + 1)
            self._transition(ControllerPhase.GENERATING_NEXT)

            if self._turn_count == 0:
                spec = build_first_question_prompt(self.config)
            else:
                context = infer_context(self._answers, self._turn_count)
                spec = build_next_question_prompt(
                    answers=self._answers,
                    question_history=self._question_history,
                    context=context,
                    turn_count=self._turn_count,
                    config=self.config,
                )
            result = await self.client.infer(spec, QUESTION_SHAPE)
            self._set_question(result.payload)
            self._transition(ControllerPhase.AWAITING_ANSWER)
            return result.payload

    def stop(self) -> None:
        """Abandon the interview; answers stay exportable."""
        if self._busy:
            raise ConversationBusyError("Cannot stop while another operation is in progress")
        if self._phase in {ControllerPhase.IDLE, ControllerPhase.COMPLETE, ControllerPhase.STOPPED}:
            return
        self._current_question = None
        logger.info("Interview stopped after %s answers", self._turn_count)
        self._transition(ControllerPhase.STOPPED)

    def export_answers(self) -> dict[int, str]:
        """Map 1-based turn index to final answer, in submission order."""
        return {index: answer.final_answer for index, answer in enumerate(self._answers, start=1)}

    def export_for_analysis(self) -> dict[str, str]:
        """Flatten answers into the ``q1`` / ``q1_question`` shape analysis expects."""
        result: dict[str, str] = {}
        for index, answer in enumerate(self._answers, start=1):
            result[f"q{index}"] = answer.final_answer
            result[f"q{index}_question"] = answer.question_id
        return result

    # -- internals -------------------------------------------------------

    def _validate_submission(
        self, selected_option: str | None, custom_text: str | None
    ) -> Answer:
        if self._done or self._phase == ControllerPhase.COMPLETE:
            raise ValidationError("The interview is already complete")
        question = self._current_question
        if question is None or self._phase != ControllerPhase.AWAITING_ANSWER:
            raise ValidationError("There is no current question")

        answer = Answer.create(question.id, selected_option, custom_text)
        if answer.selected_option not in question.options:
            raise ValidationError(
                f"{answer.selected_option!r} is not an option of question {question.id}"
            )
        return answer

    def _set_question(self, question: Question) -> None:
        self._current_question = question
        self._question_history.append(question.prompt_text)

    def _complete(self) -> None:
        self._current_question = None
        self._done = True
        duration = time.monotonic() - self._started_monotonic
        logger.info(
            "Interview complete (%s answers, %.1fs)", self._turn_count, duration
        )
        self._transition(ControllerPhase.COMPLETE)
