"""Adaptive, multi-turn expertise interview.

Public API:
    - ConversationController: Interview state machine
    - InterviewService: runInterview stream and expertise analysis
    - infer_context / is_done: Coverage inference and completion policy
    - EventBus: Observer channel for state snapshots, cost and budget alerts, client status
"""

from src.interview.context import InterviewContext, infer_context
from src.interview.controller import ConversationController
from src.interview.errors import ConversationBusyError, InterviewError, ValidationError
from src.interview.events import (
    BUDGET_ALERT,
    COST_WARNING,
    STATE_CHANGED,
    STATUS,
    Event,
    EventBus,
    attach_event_logger,
)
from src.interview.models import (
    Answer,
    ControllerPhase,
    ConversationSnapshot,
    CoverageTag,
    FocusPhase,
    Progress,
)
from src.interview.policy import MAX_TURNS, MIN_TURNS, estimate_progress, is_done
from src.interview.service import InterviewService, Reply

__all__ = [
    "ConversationController",
    "InterviewService",
    "Reply",
    "InterviewContext",
    "infer_context",
    "is_done",
    "estimate_progress",
    "MIN_TURNS",
    "MAX_TURNS",
    "Answer",
    "ControllerPhase",
    "ConversationSnapshot",
    "CoverageTag",
    "FocusPhase",
    "Progress",
    "EventBus",
    "Event",
    "STATE_CHANGED",
    "COST_WARNING",
    "BUDGET_ALERT",
    "STATUS",
    "attach_event_logger",
    "InterviewError",
    "ValidationError",
    "ConversationBusyError",
]
