"""Stage Validator -- is the captured record complete enough to move on?

Looks only at the accumulated :class:`CapturedProject`, never at the
latest turn, so it is idempotent and independent of the Input Assessor.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..config.models import (
    BlueprintStatus,
    CapturedProject,
    Step,
    ValidationResult,
    require_exhaustive,
)
from ..config.settings import CoachSettings, GateThresholds
from ..errors import ContractViolation

logger = logging.getLogger(__name__)

CONTENT_STEPS: List[Step] = [
    Step.BIG_IDEA,
    Step.ESSENTIAL_QUESTION,
    Step.CHALLENGE,
    Step.JOURNEY,
    Step.DELIVERABLES,
]


def _plural(n: int, word: str) -> str:
    if n == 1:
        return f"{n} more {word}"
    return f"{n} more {word}s"


class StageValidator:
    """Completeness gates per step."""

    def __init__(self, settings: Optional[CoachSettings] = None) -> None:
        self.settings = settings or CoachSettings()
        self._gates: Dict[Step, Callable[[CapturedProject], ValidationResult]] = {
            Step.BIG_IDEA: self._big_idea,
            Step.ESSENTIAL_QUESTION: self._essential_question,
            Step.CHALLENGE: self._challenge,
            Step.JOURNEY: self._journey,
            Step.DELIVERABLES: self._deliverables,
            Step.COMPLETION: self._everything,
            Step.COMPLETED: self._everything,
        }
        require_exhaustive(self._gates, Step, "StageValidator gates")

    @property
    def gates(self) -> GateThresholds:
        return self.settings.gates

    def validate(self, step, captured: CapturedProject) -> ValidationResult:
        """Check the completeness gate of *step* against *captured*.

        Raises UnknownStageError for an unknown tag and ContractViolation
        when *captured* is None.
        """
        step = Step.coerce(step)
        if captured is None:
            raise ContractViolation("validate() needs a CapturedProject, got None")
        result = self._gates[step](captured)
        logger.debug("validate step=%s ok=%s missing=%s", step.value, result.ok, result.missing)
        return result

    # ------------------------------------------------------------------
    # Ideation
    # ------------------------------------------------------------------

    def _min_length(self, value: str, minimum: int, key: str, what: str) -> ValidationResult:
        length = len((value or "").strip())
        if length >= minimum:
            return ValidationResult(ok=True)
        if length == 0:
            reason = f"We still need your {what} (at least {minimum} characters)."
        else:
            reason = (
                f"Your {what} is {length} characters; make it at least {minimum} "
                "so it carries a complete thought."
            )
        return ValidationResult(ok=False, reason=reason, missing={key: minimum - length})

    def _big_idea(self, captured: CapturedProject) -> ValidationResult:
        return self._min_length(
            captured.ideation.big_idea, self.gates.big_idea_min_length,
            "big_idea_chars", "Big Idea",
        )

    def _essential_question(self, captured: CapturedProject) -> ValidationResult:
        return self._min_length(
            captured.ideation.essential_question, self.gates.essential_question_min_length,
            "essential_question_chars", "Essential Question",
        )

    def _challenge(self, captured: CapturedProject) -> ValidationResult:
        return self._min_length(
            captured.ideation.challenge, self.gates.challenge_min_length,
            "challenge_chars", "Challenge",
        )

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def _journey(self, captured: CapturedProject) -> ValidationResult:
        have = len(captured.journey.phases)
        need = self.gates.min_phases
        if have >= need:
            return ValidationResult(ok=True)
        return ValidationResult(
            ok=False,
            reason=f"Add {_plural(need - have, 'phase')} ({have} of {need} captured).",
            missing={"phases": need - have},
        )

    def _deliverables(self, captured: CapturedProject) -> ValidationResult:
        d = captured.deliverables
        counts = [
            ("milestones", "milestone", len(d.milestones), self.gates.min_milestones),
            ("artifacts", "artifact", len(d.artifacts), self.gates.min_artifacts),
            ("criteria", "rubric criterion", len(d.rubric.criteria), self.gates.min_criteria),
        ]
        missing: Dict[str, int] = {}
        parts: List[str] = []
        for key, word, have, need in counts:
            if have < need:
                missing[key] = need - have
                noun = _plural(need - have, word)
                if word == "rubric criterion" and need - have > 1:
                    noun = f"{need - have} more rubric criteria"
                parts.append(f"{noun} ({have} of {need})")
        if not missing:
            return ValidationResult(ok=True)
        return ValidationResult(
            ok=False, reason="Add " + ", ".join(parts) + ".", missing=missing,
        )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _everything(self, captured: CapturedProject) -> ValidationResult:
        for step in CONTENT_STEPS:
            result = self._gates[step](captured)
            if not result.ok:
                return ValidationResult(
                    ok=False,
                    reason=f"Finish the {step.label} step first. {result.reason}",
                    missing=result.missing,
                )
        return ValidationResult(ok=True)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def first_incomplete_step(self, captured: CapturedProject) -> Step:
        """Resume point: the first content step whose gate fails.

        A record that passes every gate resumes at COMPLETION.
        """
        for step in CONTENT_STEPS:
            if not self.validate(step, captured).ok:
                return step
        return Step.COMPLETION

    def status(self, captured: CapturedProject) -> BlueprintStatus:
        """Overall blueprint status from the five content gates."""
        checks = [
            bool(captured.ideation.big_idea),
            bool(captured.ideation.essential_question),
            bool(captured.ideation.challenge),
            self.validate(Step.JOURNEY, captured).ok,
            self.validate(Step.DELIVERABLES, captured).ok,
        ]
        passed = sum(checks)
        if passed == len(checks):
            return BlueprintStatus.READY
        if passed > 0:
            return BlueprintStatus.IN_PROGRESS
        return BlueprintStatus.DRAFT


def validate(step, captured: CapturedProject, settings: Optional[CoachSettings] = None) -> ValidationResult:
    """Module-level shortcut for :meth:`StageValidator.validate`."""
    return StageValidator(settings).validate(step, captured)

