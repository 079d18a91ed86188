"""Prompt builders for question generation and expertise analysis."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

from src.inference.config import InferenceConfig
from src.inference.models import OTHER_OPTION, PromptKind, PromptSpec
from src.interview.context import InterviewContext
from src.interview.models import Answer, FocusPhase
from src.interview.policy import MAX_TURNS, MIN_TURNS

INTERVIEWER_SYSTEM_PROMPT = (
    "You are a professional, efficient IT business consultant for experienced "
    "professionals in their 40s and 50s. Respond with JSON only."
)

ANALYST_SYSTEM_PROMPT = (
    "You are an IT business analyst for experienced professionals in their 40s and "
    "50s. Provide strategic, personalized analysis results in JSON format that the "
    "user can trust as a business direction."
)

QUESTION_FORMAT = "\n".join(
    [
        "Response format:",
        "{",
        '  "question": "question text",',
        '  "purpose": "why this question is asked",',
        f'  "options": ["option 1", "option 2", "option 3", "option 4", "{OTHER_OPTION}"],',
        f'  "customPlaceholder": "hint shown when \'{OTHER_OPTION}\' is chosen"',
        "}",
    ]
)

JSON_ONLY_RULES = "\n".join(
    [
        "You must follow these rules:",
        "- Return a pure JSON object only",
        "- No code fences (```)",
        "- No explanations or extra text",
        "- Start with { and end with }",
        '- Never include text such as "I\'m sorry"',
    ]
)

FOCUS_AREAS: dict[FocusPhase, str] = {
    FocusPhase.PROFILING: "Understand the respondent's specific strengths in their field",
    FocusPhase.DIRECTION: "Find inefficiencies worth automating and the target customers",
    FocusPhase.PLANNING: "Pin down the service format, business scale, budget and revenue goals",
    FocusPhase.CONFIRMATION: "Confirm the launch timeline and remaining concerns",
}


def _messages(system_prompt: str, user_prompt: str) -> tuple[dict[str, str], ...]:
    return (
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    )


def build_first_question_prompt(config: InferenceConfig) -> PromptSpec:
    """Prompt for the opening question (field of expertise)."""
    user_prompt = "\n".join(
        [
            "Generate the first interview question.",
            "- Purpose: identify the respondent's main field of expertise",
            "- At most 5 general options",
            f'- End the options with "{OTHER_OPTION}"',
            "- Professional, concise tone",
            "",
            QUESTION_FORMAT,
        ]
    )
    return PromptSpec(
        kind=PromptKind.FIRST_QUESTION,
        messages=_messages(INTERVIEWER_SYSTEM_PROMPT, user_prompt),
        max_output_units=config.question_max_output_units,
        turn_count=0,
        question_id="q1",
    )


def build_next_question_prompt(
    *,
    answers: Sequence[Answer],
    question_history: Sequence[str],
    context: InterviewContext,
    turn_count: int,
    config: InferenceConfig,
) -> PromptSpec:
    """Prompt for the next question, grounded in the conversation so far."""
    answer_lines = [
        f"Question {index}: {answer.final_answer}"
        for index, answer in enumerate(answers, start=1)
    ]
    history_lines = [f"{index}. {text}" for index, text in enumerate(question_history, start=1)]
    covered = ", ".join(sorted(tag.value for tag in context.coverage_tags)) or "none"

    lines = [
        "Generate the next interview question based on the conversation so far.",
        "",
        "## Current status",
        f"- Questions answered: {turn_count}",
        f"- Goal: reach a business direction within {MIN_TURNS}-{MAX_TURNS} questions",
        f"- Current focus: {context.focus_phase.value} ({FOCUS_AREAS[context.focus_phase]})",
        f"- Topics already covered: {covered}",
    ]
    for key, value in context.hints().items():
        lines.append(f"- Inferred {key.replace('_', ' ')}: {value}")

    lines += [
        "",
        "## Previous answers",
        *answer_lines,
        "",
        "## Questions already asked (do not repeat)",
        *history_lines,
        "",
        "## Rules",
        "1. Ask something more specific than the previous answers",
        "2. Collect what is needed to recommend a business solution",
        f'3. 4-5 likely answers plus "{OTHER_OPTION}"',
        "4. Professional, concise tone",
        "5. Never ask something similar to a question already asked",
        "",
        QUESTION_FORMAT,
    ]

    return PromptSpec(
        kind=PromptKind.NEXT_QUESTION,
        messages=_messages(INTERVIEWER_SYSTEM_PROMPT, "\n".join(lines)),
        max_output_units=config.question_max_output_units,
        turn_count=turn_count,
        question_id=f"q{turn_count + 1}",
    )


def analysis_inputs(answers: Mapping[str, str]) -> dict[str, str]:
    """Pick the known fields the analysis prompt and fallback key off.

    Accepts the flattened ``q1``/``q1_question`` shape as well as the
    turn-indexed ``"1"``, ``"2"`` shape written by the interview export.
    """
    expertise = (
        answers.get("expertise_field")
        or answers.get("expertise_main_field")
        or answers.get("q1")
        or answers.get("1")
        or ""
    )
    name = answers.get("basic_name") or answers.get("name") or ""
    experience = answers.get("experience_years") or answers.get("expertise_years") or ""
    return {
        "expertise_field": str(expertise),
        "name": str(name),
        "experience_years": str(experience),
    }


def build_analysis_prompt(answers: Mapping[str, str], config: InferenceConfig) -> PromptSpec:
    """Prompt for the final expertise analysis."""
    inputs = analysis_inputs(answers)
    expertise = inputs["expertise_field"] or "general business"
    name = inputs["name"] or "the respondent"
    experience = inputs["experience_years"] or "unspecified"

    user_prompt = "\n".join(
        [
            f"Analyze {name} (field: {expertise}, experience: {experience}).",
            "",
            "Respondent answers (JSON):",
            json.dumps(dict(answers), ensure_ascii=False, indent=2),
            "",
            "Respond only in this JSON format:",
            "{",
            '  "expertiseScore": 0-100,',
            f'  "personalizedInsight": "insight built on {name}\'s {expertise} experience",',
            f'  "businessHint": "{expertise} x AI service idea",',
            '  "marketOpportunity": "market timing and opportunity",',
            '  "successProbability": "success probability % for similar backgrounds",',
            '  "keyStrengths": ["strength 1", "strength 2", "strength 3", "strength 4"],',
            '  "nextStepTeaser": "why a concrete tech stack / partner / roadmap is needed",',
            '  "exclusiveValue": "exclusive assets or network value",',
            '  "urgencyFactor": "why to start now"',
            "}",
            "",
            JSON_ONLY_RULES,
        ]
    )

    return PromptSpec(
        kind=PromptKind.ANALYSIS,
        messages=_messages(ANALYST_SYSTEM_PROMPT, user_prompt),
        max_output_units=config.analysis_max_output_units,
        fallback_inputs=inputs,
    )
