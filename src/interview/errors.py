"""Exceptions raised to callers of the interview controller."""

from __future__ import annotations


class InterviewError(Exception):
    """Base exception for interview operations."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ValidationError(InterviewError):
    """Caller misuse; raised before any state is mutated."""


class ConversationBusyError(ValidationError):
    """A controller operation was invoked while another one is still running."""
