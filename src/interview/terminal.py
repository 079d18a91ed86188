"""Terminal prompt helpers for running an interview from the CLI.

Parsing/formatting helpers are pure and testable; the ``prompt_*`` wrappers
read from stdin.
"""

from __future__ import annotations

from src.inference.models import OTHER_OPTION, Question
from src.interview.service import Reply


def format_question(question: Question, *, number: int | None = None) -> str:
    """Render a question and its numbered options."""
    header = f"Q{number}. " if number is not None else ""
    lines = [f"{header}{question.prompt_text}"]
    if question.purpose_text:
        lines.append(f"   ({question.purpose_text})")
    for index, option in enumerate(question.options, start=1):
        lines.append(f"  {index}. {option}")
    return "\n".join(lines)


def parse_option_choice(answer: str, question: Question) -> str:
    """Resolve a typed choice (number or exact option text) to an option.

    Raises:
        ValueError: The input matches no option.
    """
    normalized = answer.strip()
    if not normalized:
        raise ValueError("Expected an option number")

    if normalized.isdigit():
        index = int(normalized)
        if 1 <= index <= len(question.options):
            return question.options[index - 1]
        raise ValueError(f"Choose a number between 1 and {len(question.options)}")

    for option in question.options:
        if option.lower() == normalized.lower():
            return option
    raise ValueError("Expected an option number or the exact option text")


def prompt_reply(question: Question, *, number: int | None = None) -> Reply:
    """Prompt until the user picks a valid option (and custom text for 'other')."""
    print()
    print(format_question(question, number=number))
    while True:
        answer = input("Your choice > ")
        try:
            option = parse_option_choice(answer, question)
        except ValueError as e:
            print(str(e))
            continue

        if option != OTHER_OPTION:
            return Reply(selected_option=option)

        placeholder = question.custom_placeholder or "Please describe"
        while True:
            custom = input(f"{placeholder} > ").strip()
            if custom:
                return Reply(selected_option=OTHER_OPTION, custom_text=custom)
            print("Please enter a non-empty answer.")
