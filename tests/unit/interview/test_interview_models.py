"""Tests for interview data models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from src.inference.models import OTHER_OPTION, Question
from src.interview.errors import ValidationError
from src.interview.models import (
    Answer,
    ControllerPhase,
    ConversationSnapshot,
    CoverageTag,
)


class TestAnswerCreate:
    def test_selected_option_becomes_final_answer(self) -> None:
        answer = Answer.create("q1", selected_option="Consulting")

        assert answer.final_answer == "Consulting"
        assert answer.custom_text is None

    def test_other_uses_trimmed_custom_text(self) -> None:
        answer = Answer.create("q1", selected_option=OTHER_OPTION, custom_text="  Bakery  ")

        assert answer.selected_option == OTHER_OPTION
        assert answer.final_answer == "Bakery"
        assert answer.custom_text == "Bakery"

    def test_bare_custom_text_takes_other_path(self) -> None:
        answer = Answer.create("q1", custom_text="Veterinary care")

        assert answer.selected_option == OTHER_OPTION
        assert answer.final_answer == "Veterinary care"

    def test_selected_option_ignores_custom_text(self) -> None:
        answer = Answer.create("q1", selected_option="Finance", custom_text="ignored")

        assert answer.final_answer == "Finance"
        assert answer.custom_text is None

    def test_missing_selection_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Please select an answer"):
            Answer.create("q1")

    @pytest.mark.parametrize("custom_text", [None, "", "   "])
    def test_other_without_text_rejected(self, custom_text) -> None:
        with pytest.raises(ValidationError):
            Answer.create("q1", selected_option=OTHER_OPTION, custom_text=custom_text)

    def test_direct_construction_enforces_final_answer(self) -> None:
        with pytest.raises(ValidationError):
            Answer(question_id="q1", final_answer="B", selected_option="A")

    def test_to_dict(self) -> None:
        answer = Answer.create("q2", selected_option="Seoul")

        data = answer.to_dict()

        assert data["question_id"] == "q2"
        assert data["final_answer"] == "Seoul"
        assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


class TestConversationSnapshot:
    def test_is_frozen(self) -> None:
        snapshot = ConversationSnapshot(
            phase=ControllerPhase.IDLE,
            answers=(),
            current_question=None,
            turn_count=0,
            done=False,
            started_at=None,
        )

        with pytest.raises(AttributeError):
            snapshot.turn_count = 3  # type: ignore[misc]

    def test_to_dict(self) -> None:
        question = Question.model_validate({"id": "q2", "question": "Q?", "options": ["A"]})
        snapshot = ConversationSnapshot(
            phase=ControllerPhase.AWAITING_ANSWER,
            answers=(Answer.create("q1", selected_option="Real estate"),),
            current_question=question,
            turn_count=1,
            done=False,
            started_at=datetime(2025, 1, 1, tzinfo=UTC),
            coverage_tags=frozenset({CoverageTag.INDUSTRY}),
        )

        data = snapshot.to_dict()

        assert data["phase"] == "awaiting_answer"
        assert data["current_question"]["id"] == "q2"
        assert data["coverage_tags"] == ["industry"]
        assert snapshot.is_active is True
