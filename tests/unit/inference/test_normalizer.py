"""Tests for provider response normalization."""

from __future__ import annotations

import json

from src.inference.models import ANALYSIS_SHAPE, QUESTION_SHAPE
from src.inference.normalizer import extract_json_object, normalize, strip_noise

ANALYSIS_REQUIRED = ANALYSIS_SHAPE.required_fields


class TestNormalize:
    def test_apology_fence_and_trailing_comma_are_all_tolerated(self) -> None:
        raw = (
            "I'm sorry, here is ```json\n"
            '{"expertiseScore":90,"personalizedInsight":"x","businessHint":"y",}\n'
            "```"
        )

        result = normalize(raw, ANALYSIS_REQUIRED, ANALYSIS_SHAPE.defaults)

        assert result.ok is True
        assert result.error is None
        assert result.record["expertiseScore"] == 90
        assert result.record["personalizedInsight"] == "x"
        assert result.record["businessHint"] == "y"
        assert result.record["keyStrengths"] == []
        assert result.record["marketOpportunity"] == ""

    def test_clean_json_passes_through(self) -> None:
        raw = '{"question": "Q?", "options": ["a", "other"]}'

        result = normalize(raw, QUESTION_SHAPE.required_fields)

        assert result.ok is True
        assert result.record == {"question": "Q?", "options": ["a", "other"]}

    def test_normalizing_its_own_output_is_stable(self) -> None:
        raw = '```json\n{"question": "Q?", "options": ["a"],}\n```'
        first = normalize(raw, QUESTION_SHAPE.required_fields, QUESTION_SHAPE.defaults)

        second = normalize(
            json.dumps(first.record), QUESTION_SHAPE.required_fields, QUESTION_SHAPE.defaults
        )

        assert second.ok is True
        assert second.record == first.record

    def test_braces_inside_strings_do_not_end_the_object(self) -> None:
        raw = (
            'Here is the result: {"question": "Use {curly} braces?", '
            '"options": ["yes } no", "maybe"]} trailing {junk}'
        )

        result = normalize(raw, QUESTION_SHAPE.required_fields)

        assert result.ok is True
        assert result.record["question"] == "Use {curly} braces?"
        assert result.record["options"] == ["yes } no", "maybe"]

    def test_korean_preamble_is_stripped(self) -> None:
        raw = '다음은 질문입니다: {"question": "Q?", "options": ["a"]}'

        result = normalize(raw, QUESTION_SHAPE.required_fields)

        assert result.ok is True
        assert result.record["question"] == "Q?"

    def test_missing_required_field_fails(self) -> None:
        raw = '{"expertiseScore": 80, "personalizedInsight": "x"}'

        result = normalize(raw, ANALYSIS_REQUIRED, ANALYSIS_SHAPE.defaults)

        assert result.ok is False
        assert "businessHint" in (result.error or "")

    def test_blank_required_field_fails(self) -> None:
        raw = '{"expertiseScore": 80, "personalizedInsight": "  ", "businessHint": "y"}'

        result = normalize(raw, ANALYSIS_REQUIRED)

        assert result.ok is False

    def test_zero_score_counts_as_present(self) -> None:
        raw = '{"expertiseScore": 0, "personalizedInsight": "x", "businessHint": "y"}'

        result = normalize(raw, ANALYSIS_REQUIRED)

        assert result.ok is True
        assert result.record["expertiseScore"] == 0

    def test_non_object_json_fails(self) -> None:
        result = normalize('["question", "options"]', QUESTION_SHAPE.required_fields)

        assert result.ok is False
        assert result.record == {}

    def test_plain_prose_fails_without_raising(self) -> None:
        result = normalize("I cannot help with that.", QUESTION_SHAPE.required_fields)

        assert result.ok is False
        assert result.error

    def test_non_string_input_fails_without_raising(self) -> None:
        result = normalize(None, QUESTION_SHAPE.required_fields)  # type: ignore[arg-type]

        assert result.ok is False

    def test_defaults_do_not_overwrite_present_values(self) -> None:
        raw = '{"question": "Q?", "options": ["a"], "purpose": "why"}'

        result = normalize(raw, QUESTION_SHAPE.required_fields, QUESTION_SHAPE.defaults)

        assert result.record["purpose"] == "why"
        assert result.record["customPlaceholder"] == ""

    def test_default_containers_are_not_shared_between_calls(self) -> None:
        raw = '{"expertiseScore": 1, "personalizedInsight": "x", "businessHint": "y"}'

        first = normalize(raw, ANALYSIS_REQUIRED, ANALYSIS_SHAPE.defaults)
        first.record["keyStrengths"].append("mutated")
        second = normalize(raw, ANALYSIS_REQUIRED, ANALYSIS_SHAPE.defaults)

        assert second.record["keyStrengths"] == []
        assert ANALYSIS_SHAPE.defaults["keyStrengths"] == []


class TestHelpers:
    def test_strip_noise_removes_fences(self) -> None:
        assert strip_noise('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_noise_leaves_clean_text_alone(self) -> None:
        assert strip_noise('  {"a": 1}  ') == '{"a": 1}'

    def test_extract_returns_first_balanced_object(self) -> None:
        assert extract_json_object('x {"a": {"b": 1}} y {"c": 2}') == '{"a": {"b": 1}}'

    def test_extract_handles_escaped_quotes(self) -> None:
        text = '{"a": "say \\"}\\" now"} tail'
        assert extract_json_object(text) == '{"a": "say \\"}\\" now"}'

    def test_extract_falls_back_to_outer_slice_when_unbalanced(self) -> None:
        assert extract_json_object('{"a": {"b": 1}') == '{"a": {"b": 1}'

    def test_extract_without_brace_returns_text(self) -> None:
        assert extract_json_object("no json here") == "no json here"
