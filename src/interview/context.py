"""Keyword-based inference of interview coverage and focus.

Pure functions: no I/O, no provider calls. Tags only record that some answer
touched a topic; they never carry the answer itself.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from src.interview.models import Answer, CoverageTag, FocusPhase

INDUSTRY_TERMS: dict[str, tuple[str, ...]] = {
    "real estate": ("real estate", "realty", "property", "부동산"),
    "finance": ("finance", "financial", "insurance", "banking", "asset management", "금융", "보험"),
    "education": ("education", "teaching", "training", "tutoring", "lecture", "교육", "강의"),
    "consulting": ("consulting", "consultant", "advisory", "컨설팅"),
    "healthcare": ("healthcare", "medical", "clinic", "의료", "헬스케어"),
    "legal": ("legal", "law firm", "attorney", "법률"),
    "accounting": ("accounting", "tax", "bookkeeping", "세무", "회계"),
}

GOAL_TERMS: tuple[str, ...] = (
    "revenue",
    "income",
    "profit",
    "sales",
    "customer",
    "client",
    "매출",
    "수익",
    "고객",
)

TIMEFRAME_TERMS: tuple[str, ...] = (
    "month",
    "year",
    "week",
    "hour",
    "quarter",
    "timeline",
    "개월",
    "년",
    "시간",
)

EXPERTISE_TERMS: tuple[str, ...] = (
    "expert",
    "expertise",
    "specializ",
    "specialis",
    "career",
    "experience",
    "전문",
    "특화",
    "경력",
)

TAG_VOCABULARIES: dict[CoverageTag, tuple[str, ...]] = {
    CoverageTag.INDUSTRY: tuple(term for terms in INDUSTRY_TERMS.values() for term in terms),
    CoverageTag.GOAL: GOAL_TERMS,
    CoverageTag.TIMEFRAME: TIMEFRAME_TERMS,
}


@dataclass(frozen=True)
class InterviewContext:
    """Derived view of the answers so far, used to flavor prompts."""

    coverage_tags: frozenset[CoverageTag]
    focus_phase: FocusPhase
    industry: str | None = None
    expertise: str | None = None
    business_goal: str | None = None

    def hints(self) -> dict[str, str]:
        hints: dict[str, str] = {}
        if self.industry:
            hints["industry"] = self.industry
        if self.expertise:
            hints["expertise"] = self.expertise
        if self.business_goal:
            hints["business_goal"] = self.business_goal
        return hints


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in terms)


def detect_tags(answers: Sequence[str]) -> frozenset[CoverageTag]:
    """Return every coverage tag whose vocabulary appears in any answer."""
    tags: set[CoverageTag] = set()
    for tag, vocabulary in TAG_VOCABULARIES.items():
        if any(_contains_any(answer, vocabulary) for answer in answers):
            tags.add(tag)
    return frozenset(tags)


def focus_phase_for(turn_count: int) -> FocusPhase:
    if turn_count <= 2:
        return FocusPhase.PROFILING
    if turn_count <= 4:
        return FocusPhase.DIRECTION
    if turn_count <= 6:
        return FocusPhase.PLANNING
    return FocusPhase.CONFIRMATION


def infer_industry(first_answer: str | None) -> str | None:
    """Map the first answer onto a known industry label."""
    if not first_answer:
        return None
    for label, terms in INDUSTRY_TERMS.items():
        if _contains_any(first_answer, terms):
            return label
    return None


def _first_matching(answers: Sequence[str], terms: Iterable[str]) -> str | None:
    terms = tuple(terms)
    return next((answer for answer in answers if _contains_any(answer, terms)), None)


def infer_context(answers: Sequence[Answer], turn_count: int) -> InterviewContext:
    """Derive coverage tags, focus phase and prompt hints from the answers."""
    texts = [answer.final_answer for answer in answers]
    return InterviewContext(
        coverage_tags=detect_tags(texts),
        focus_phase=focus_phase_for(turn_count),
        industry=infer_industry(texts[0] if texts else None),
        expertise=_first_matching(texts, EXPERTISE_TERMS),
        business_goal=_first_matching(texts, GOAL_TERMS),
    )
