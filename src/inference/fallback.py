"""Deterministic last-resort responses.

Nothing here touches the network or raises for well-formed prompt specs; the
tiered client relies on that to always return a usable result.
"""

from __future__ import annotations

from collections.abc import Mapping

from src.inference.models import (
    OTHER_OPTION,
    Analysis,
    PromptKind,
    PromptSpec,
    Question,
)

FIRST_QUESTION: dict[str, object] = {
    "question": "What is the main field you currently work in?",
    "purpose": "Identify your field of expertise to set the direction for an IT solution",
    "options": [
        "Real estate (brokerage, investment, consulting)",
        "Finance/insurance (asset management, insurance planning)",
        "Education/training (teaching your specialty)",
        "Consulting (management, strategy, advisory)",
        "Healthcare/medical",
        OTHER_OPTION,
    ],
    "customPlaceholder": "Tell us about your specific field",
}

# Indexed by clamped turn count; later turns reuse the last entry.
QUESTION_BANK: tuple[dict[str, object], ...] = (
    {
        "question": "What is your most distinctive expertise in that field?",
        "purpose": "Uncover a unique value proposition",
        "options": [
            "Deep knowledge of a specific region",
            "A particular customer segment",
            "Unusual analytical ability",
            "Network and relationships",
            OTHER_OPTION,
        ],
    },
    {
        "question": "Which part of your current work takes the most time?",
        "purpose": "Identify areas that could be automated",
        "options": [
            "Customer consultations",
            "Gathering information",
            "Writing documents",
            "Managing clients",
            OTHER_OPTION,
        ],
    },
    {
        "question": "Who would be the main customers of your new service?",
        "purpose": "Define the target customer segment and market",
        "options": [
            "Individual customers",
            "Small businesses",
            "Large enterprises",
            "Fellow professionals in my field",
            OTHER_OPTION,
        ],
    },
    {
        "question": "What monthly revenue are you aiming for?",
        "purpose": "Set the business scale",
        "options": [
            "Revenue of $1,000-3,000 per month",
            "Revenue of $3,000-5,000 per month",
            "Revenue of $5,000-10,000 per month",
            "Revenue above $10,000 per month",
            OTHER_OPTION,
        ],
    },
    {
        "question": "When would you like to launch?",
        "purpose": "Establish the execution timeline",
        "options": [
            "Within 3 months",
            "Within 6 months",
            "Within 1 year",
            "More than 1 year from now",
            OTHER_OPTION,
        ],
    },
    {
        "question": "What concerns you most about starting?",
        "purpose": "Surface risks to address in the recommendation",
        "options": [
            "Lack of technical knowledge",
            "Initial investment cost",
            "Finding customers",
            "Time commitment",
            OTHER_OPTION,
        ],
    },
)

DEFAULT_PLACEHOLDER = "Please describe it in your own words"


def first_question(question_id: str = "q1") -> Question:
    return Question.model_validate({**FIRST_QUESTION, "id": question_id})


def next_question(turn_count: int, question_id: str) -> Question:
    """Pick a bank question for the given number of answered turns."""
    index = min(max(turn_count - 1, 0), len(QUESTION_BANK) - 1)
    entry = QUESTION_BANK[index]
    return Question.model_validate(
        {**entry, "id": question_id, "customPlaceholder": DEFAULT_PLACEHOLDER}
    )


def analysis(inputs: Mapping[str, str]) -> Analysis:
    """Build a templated analysis keyed off the stated field of expertise."""
    expertise = (inputs.get("expertise_field") or "").strip() or "your field"
    name = (inputs.get("name") or "").strip() or "You"
    possessive = "Your" if name == "You" else f"{name}'s"

    return Analysis(
        expertise_score=87,
        personalized_insight=(
            f"{possessive} experience in {expertise} becomes a strong differentiator "
            "when combined with AI technology."
        ),
        business_hint=f"{expertise} x AI service: a personalized solution platform",
        market_opportunity=(
            f"The AI market for {expertise} is expected to grow quickly over the next "
            "18 months, a window where being early pays off most"
        ),
        success_probability_text=(
            "84% (six-month average for professionals with a similar background)"
        ),
        key_strengths=(
            "Long-accumulated domain knowledge",
            "Understanding of the target customers",
            "Trust-based network",
            "Insight grounded in hands-on experience",
        ),
        next_step_teaser=(
            "A concrete AI tech stack, partner introductions and a six-month "
            "development roadmap are designed with you in an expert consultation."
        ),
        exclusive_value=(
            "A network of AI development partners and data from 200+ successful "
            "cases make an MVP possible within three months"
        ),
        urgency_factor=(
            "This is the window before competitors arrive; the market should be "
            "claimed within six months"
        ),
    )


def generate(spec: PromptSpec) -> Question | Analysis:
    """Deterministic response for any prompt spec."""
    if spec.kind == PromptKind.ANALYSIS:
        return analysis(spec.fallback_inputs)
    question_id = spec.question_id or f"q{spec.turn_count + 1}"
    if spec.kind == PromptKind.FIRST_QUESTION:
        return first_question(question_id)
    return next_question(spec.turn_count, question_id)
