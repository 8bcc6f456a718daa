"""Exceptions raised by the stage engine.

Only caller bugs raise.  "Not done yet" outcomes (rejected input,
incomplete stage data) are returned as values on the turn record.
"""

from __future__ import annotations

from typing import Any


class CoachError(Exception):
    """Base exception for the ALF Coach engine."""


class UnknownStageError(CoachError, ValueError):
    """A stage or step tag outside the closed set was passed in."""

    def __init__(self, value: Any):
        super().__init__(f"Unknown stage tag: {value!r}")
        self.value = value


class ContractViolation(CoachError, ValueError):
    """The caller broke an engine contract (missing record, bad target...)."""


class LLMError(CoachError):
    """Raised when the LLM API call fails."""
