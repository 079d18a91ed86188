"""When an interview has gathered enough to stop."""

from __future__ import annotations

from collections.abc import Iterable

from src.interview.models import CoverageTag, Progress

MIN_TURNS = 6
MAX_TURNS = 8

REQUIRED_TAGS: frozenset[CoverageTag] = frozenset(
    {CoverageTag.INDUSTRY, CoverageTag.GOAL, CoverageTag.TIMEFRAME}
)


def is_done(turn_count: int, coverage_tags: Iterable[CoverageTag]) -> bool:
    """Decide completion from the turn count and observed coverage.

    Never before MIN_TURNS, always at MAX_TURNS, and in between only once
    industry, goal and timeframe have each been covered.
    """
    if turn_count < MIN_TURNS:
        return False
    if turn_count >= MAX_TURNS:
        return True
    return REQUIRED_TAGS.issubset(frozenset(coverage_tags))


def estimate_progress(turn_count: int) -> Progress:
    current = max(0, turn_count)
    estimated = max(MIN_TURNS, min(MAX_TURNS, current + 2))
    percentage = min(100.0, current / estimated * 100)
    return Progress(current=current, estimated=estimated, percentage=percentage)
