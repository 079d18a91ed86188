"""Interview data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from src.inference.models import OTHER_OPTION, Question
from src.interview.errors import ValidationError


class ControllerPhase(str, Enum):
    """Conversation controller states."""

    IDLE = "idle"
    AWAITING_FIRST_QUESTION = "awaiting_first_question"
    AWAITING_ANSWER = "awaiting_answer"
    GENERATING_NEXT = "generating_next"
    COMPLETE = "complete"
    STOPPED = "stopped"


class CoverageTag(str, Enum):
    """Topic areas an answer can touch."""

    INDUSTRY = "industry"
    GOAL = "goal"
    TIMEFRAME = "timeframe"


class FocusPhase(str, Enum):
    """What the next question should concentrate on."""

    PROFILING = "profiling"
    DIRECTION = "direction"
    PLANNING = "planning"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class Answer:
    """A single accepted answer.

    ``final_answer`` is the custom text when the respondent picked "other",
    otherwise the selected option.
    """

    question_id: str
    final_answer: str
    selected_option: str | None = None
    custom_text: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.question_id:
            raise ValidationError("question_id is required")
        if self.selected_option == OTHER_OPTION:
            if not (self.custom_text or "").strip():
                raise ValidationError("'other' requires a non-empty custom answer")
            if self.final_answer != self.custom_text:
                raise ValidationError("final_answer must equal custom_text for 'other'")
        elif self.selected_option is None or self.final_answer != self.selected_option:
            raise ValidationError("final_answer must equal the selected option")

    @classmethod
    def create(
        cls,
        question_id: str,
        selected_option: str | None = None,
        custom_text: str | None = None,
    ) -> Answer:
        """Build an answer, deriving ``final_answer`` from the chosen path.

        A bare ``custom_text`` without a selected option is taken as the
        "other" path.
        """
        if selected_option is None and custom_text is not None and custom_text.strip():
            selected_option = OTHER_OPTION

        if selected_option is None or not selected_option.strip():
            raise ValidationError("Please select an answer")

        if selected_option == OTHER_OPTION:
            text = (custom_text or "").strip()
            if not text:
                raise ValidationError("'other' requires a non-empty custom answer")
            return cls(
                question_id=question_id,
                selected_option=OTHER_OPTION,
                custom_text=text,
                final_answer=text,
            )

        return cls(
            question_id=question_id,
            selected_option=selected_option,
            custom_text=None,
            final_answer=selected_option,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "selected_option": self.selected_option,
            "custom_text": self.custom_text,
            "final_answer": self.final_answer,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ConversationSnapshot:
    """Read-only view of the conversation handed to observers."""

    phase: ControllerPhase
    answers: tuple[Answer, ...]
    current_question: Question | None
    turn_count: int
    done: bool
    started_at: datetime | None
    coverage_tags: frozenset[CoverageTag] = frozenset()
    focus_phase: FocusPhase = FocusPhase.PROFILING

    @property
    def is_active(self) -> bool:
        return self.phase in {
            ControllerPhase.AWAITING_FIRST_QUESTION,
            ControllerPhase.AWAITING_ANSWER,
            ControllerPhase.GENERATING_NEXT,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "answers": [answer.to_dict() for answer in self.answers],
            "current_question": (
                self.current_question.to_dict() if self.current_question else None
            ),
            "turn_count": self.turn_count,
            "done": self.done,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "coverage_tags": sorted(tag.value for tag in self.coverage_tags),
            "focus_phase": self.focus_phase.value,
        }


@dataclass(frozen=True)
class Progress:
    """Estimated interview progress."""

    current: int
    estimated: int
    percentage: float
