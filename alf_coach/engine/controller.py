"""
ALF Coach - Stage Controller
============================

Drives one conversation through the fixed step order::

    BIG_IDEA -> ESSENTIAL_QUESTION -> CHALLENGE -> JOURNEY
             -> DELIVERABLES -> COMPLETION -> COMPLETED

Each submitted turn runs Assess -> Capture -> Merge -> Validate -> Transition:

  1. Navigation commands ("go back", "back", "continue", "next") bypass
     the pipeline and call :meth:`go_back` / :meth:`advance`.
  2. A rejected assessment holds the step; nothing is captured.
  3. Accepted text is captured and merged into a *new* record.
  4. The new record is validated for the current step; a passing gate
     advances exactly one step, a failing gate holds with the reason.

The controller owns its :class:`CapturedProject`; callers only ever see
copies.  Outcomes are returned as :class:`ConversationTurn` values, only
caller bugs raise.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..config.models import (
    AssessmentResult,
    BlueprintStatus,
    CapturedProject,
    Command,
    ConversationTurn,
    Stage,
    Step,
    STEP_ORDER,
    TurnKind,
    ValidationResult,
    next_step,
    previous_step,
    require_exhaustive,
)
from ..config.settings import CoachSettings
from ..errors import ContractViolation
from .assessor import InputAssessor
from .capturer import DataCapturer, PhaseExtractor, merge
from .coaching import fallback_for_step, transition_message
from .serialization import hydrate_captured
from .validator import StageValidator

logger = logging.getLogger(__name__)

PacingHook = Callable[[str, Step, CapturedProject], Optional[str]]

COMMAND_PHRASES: Dict[str, Command] = {
    "go back": Command.GO_BACK,
    "back": Command.GO_BACK,
    "continue": Command.CONTINUE,
    "next": Command.CONTINUE,
}

_LIST_STEPS = (Step.JOURNEY, Step.DELIVERABLES)


def parse_command(text: Optional[str]) -> Optional[Command]:
    """Return the navigation :class:`Command` typed in *text*, if any."""
    phrase = " ".join((text or "").lower().split()).rstrip(".!")
    return COMMAND_PHRASES.get(phrase)


class StageController:
    """Conversation state machine for one project blueprint.

    Args:
        settings:    Gate thresholds and assessment rules.
        extractor:   Phase extraction strategy (delimiter heuristic by default).
        duration:    Optional project duration hint, e.g. ``"6 weeks"``.
        pacing_hook: Optional ``(duration, step, captured) -> str`` callable
                     whose text is appended to turn messages.
        captured:    Record to resume from (copied, never mutated).
        step:        Step to resume at.
    """

    def __init__(
        self,
        settings: Optional[CoachSettings] = None,
        extractor: Optional[PhaseExtractor] = None,
        duration: Optional[str] = None,
        pacing_hook: Optional[PacingHook] = None,
        captured: Optional[CapturedProject] = None,
        step=Step.BIG_IDEA,
    ) -> None:
        self.settings = settings or CoachSettings()
        self.assessor = InputAssessor(self.settings)
        self.capturer = DataCapturer(self.settings, extractor)
        self.validator = StageValidator(self.settings)
        self.duration = duration
        self.pacing_hook = pacing_hook
        self._step = Step.coerce(step)
        self._captured = (
            captured.model_copy(deep=True) if captured is not None else CapturedProject()
        )
        self._history: List[ConversationTurn] = []
        self._commands: Dict[Command, Callable[[str], ConversationTurn]] = {
            Command.GO_BACK: lambda raw: self.go_back(raw_text=raw),
            Command.CONTINUE: lambda raw: self.advance(raw_text=raw),
        }
        require_exhaustive(self._commands, Command, "StageController commands")

    @classmethod
    def resume(cls, record, **kwargs) -> "StageController":
        """Rebuild a controller from a stored record (flat or nested).

        The step is the first one whose gate still fails.
        """
        clashing = sorted({"captured", "step"} & set(kwargs))
        if clashing:
            raise ContractViolation(
                f"resume() derives {', '.join(clashing)} from the record; do not pass it"
            )
        captured = hydrate_captured(record)
        settings = kwargs.get("settings")
        step = StageValidator(settings).first_incomplete_step(captured)
        return cls(captured=captured, step=step, **kwargs)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def step(self) -> Step:
        return self._step

    @property
    def stage(self) -> Stage:
        return self._step.stage

    @property
    def captured(self) -> CapturedProject:
        return self._captured.model_copy(deep=True)

    @property
    def history(self) -> List[ConversationTurn]:
        return list(self._history)

    @property
    def status(self) -> BlueprintStatus:
        return self.validator.status(self._captured)

    @property
    def is_complete(self) -> bool:
        return self._step is Step.COMPLETED

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def submit(self, text: str) -> ConversationTurn:
        """Process one user message and return the turn record."""
        raw = text if text is not None else ""
        command = parse_command(raw)
        if command is not None:
            logger.debug("command %s at step=%s", command.value, self._step.value)
            return self._commands[command](raw)

        step = self._step
        assessment = self.assessor.assess(step, raw)
        if not assessment.ok:
            return self._record(
                raw, step, TurnKind.INPUT_REJECTED,
                assessment=assessment,
                message=assessment.reason or "",
            )

        delta = self.capturer.capture(step, raw)
        self._captured = merge(self._captured, delta)
        validation = self.validator.validate(step, self._captured)

        if validation.ok:
            return self._advance_from(raw, step, assessment, validation, delta.is_empty())

        if step in _LIST_STEPS and delta.is_empty():
            logger.warning(
                "No structured %s data extracted from %d chars of accepted input",
                step.label, len(raw.strip()),
            )
            message = (
                f"I couldn't pick out any {step.label} items from that. "
                + fallback_for_step(step, self._captured, validation.reason)
            )
            return self._record(
                raw, step, TurnKind.EXTRACTION_AMBIGUOUS,
                assessment=assessment,
                validation=validation,
                extraction_empty=True,
                message=message,
            )

        return self._record(
            raw, step, TurnKind.VALIDATION_INCOMPLETE,
            assessment=assessment,
            validation=validation,
            extraction_empty=delta.is_empty(),
            message=fallback_for_step(step, self._captured, validation.reason),
        )

    def advance(self, raw_text: str = "continue") -> ConversationTurn:
        """Re-validate the current step on the existing record and move on.

        Lets a user leave a re-entered step without retyping it.
        COMPLETION still needs an explicit confirmation.
        """
        step = self._step
        if step in (Step.COMPLETION, Step.COMPLETED):
            reason = self.assessor.assess(step, raw_text).reason or ""
            return self._record(
                raw_text, step, TurnKind.INPUT_REJECTED,
                assessment=AssessmentResult.reject(reason),
                message=reason,
            )
        validation = self.validator.validate(step, self._captured)
        if not validation.ok:
            return self._record(
                raw_text, step, TurnKind.VALIDATION_INCOMPLETE,
                validation=validation,
                message=fallback_for_step(step, self._captured, validation.reason),
            )
        return self._advance_from(raw_text, step, None, validation, True)

    def go_back(self, target=None, raw_text: str = "go back") -> ConversationTurn:
        """Re-enter the previous step, or the named earlier *target*.

        Captured data is kept.  Raises UnknownStageError for an unknown tag
        and ContractViolation when *target* is not earlier than the
        current step.
        """
        step = self._step
        if target is not None:
            target = Step.coerce(target)
            if STEP_ORDER.index(target) >= STEP_ORDER.index(step):
                raise ContractViolation(
                    f"go_back target {target.value} is not before {step.value}"
                )
        if step is Step.COMPLETED:
            reason = "This blueprint is complete and can no longer be edited."
            return self._record(
                raw_text, step, TurnKind.INPUT_REJECTED,
                assessment=AssessmentResult.reject(reason),
                message=reason,
            )
        if target is None:
            target = previous_step(step)
        if target is None:
            reason = "You're already at the first step, the Big Idea."
            return self._record(
                raw_text, step, TurnKind.INPUT_REJECTED,
                assessment=AssessmentResult.reject(reason),
                message=reason,
            )

        logger.info("go back %s -> %s", step.value, target.value)
        self._step = target
        current = self._current_value(target)
        message = f"Back to the {target.label} step."
        if current:
            message += f" Currently captured: {current}. Type a new answer or 'continue'."
        else:
            message += " " + fallback_for_step(target, self._captured)
        return self._record(
            raw_text, step, TurnKind.WENT_BACK, next_step=target, message=message,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance_from(
        self,
        raw: str,
        step: Step,
        assessment: Optional[AssessmentResult],
        validation: ValidationResult,
        extraction_empty: bool,
    ) -> ConversationTurn:
        target = next_step(step)
        if target is None:
            raise ContractViolation(f"cannot advance past {step.value}")
        logger.info("advance %s -> %s", step.value, target.value)
        self._step = target
        parts = [transition_message(step) or ""]
        if target is not Step.COMPLETED:
            parts.append(fallback_for_step(target, self._captured))
        return self._record(
            raw, step, TurnKind.ADVANCED,
            assessment=assessment,
            validation=validation,
            extraction_empty=extraction_empty,
            did_advance=True,
            next_step=target,
            message=" ".join(p for p in parts if p),
        )

    def _current_value(self, step: Step) -> str:
        ideation = self._captured.ideation
        sizes = self._captured.list_sizes()
        values = {
            Step.BIG_IDEA: ideation.big_idea,
            Step.ESSENTIAL_QUESTION: ideation.essential_question,
            Step.CHALLENGE: ideation.challenge,
            Step.JOURNEY: f"{sizes['journey.phases']} phases" if sizes["journey.phases"] else "",
            Step.DELIVERABLES: (
                f"{sizes['deliverables.milestones']} milestones, "
                f"{sizes['deliverables.artifacts']} artifacts, "
                f"{sizes['deliverables.rubric.criteria']} criteria"
                if any(v for k, v in sizes.items() if k.startswith("deliverables"))
                else ""
            ),
            Step.COMPLETION: "",
            Step.COMPLETED: "",
        }
        value = values[step]
        return f'"{value}"' if value and step.stage is Stage.IDEATION else value

    def _pacing_note(self, step: Step) -> Optional[str]:
        if self.pacing_hook is None or not self.duration:
            return None
        return self.pacing_hook(self.duration, step, self.captured)

    def _record(
        self,
        raw: str,
        step: Step,
        kind: TurnKind,
        next_step: Optional[Step] = None,
        message: str = "",
        **fields,
    ) -> ConversationTurn:
        landing = next_step or self._step
        note = self._pacing_note(landing)
        if note:
            message = f"{message} {note}".strip()
        turn = ConversationTurn(
            raw_text=raw,
            step=step,
            kind=kind,
            next_step=landing,
            message=message,
            **fields,
        )
        self._history.append(turn)
        logger.debug("turn step=%s kind=%s next=%s", step.value, kind.value, landing.value)
        return turn
