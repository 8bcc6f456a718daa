"""
ALF Coach - Conversation Data Models
====================================

Defines ALL Pydantic v2 models used across the stage engine:

  Tags     : Stage, Step, Command, TurnKind, BlueprintStatus
  Capture  : Phase, Milestone, Artifact, Rubric, Ideation, Journey,
             Deliverables, CapturedProject, CaptureDelta
  Verdicts : AssessmentResult, ValidationResult
  Turns    : ConversationTurn

Convention
----------
- Field names are snake_case; the camelCase names used by the browser
  client (``bigIdea``, ``essentialQuestion``) are accepted as aliases.
- Records are treated as immutable values: every merge produces a new
  :class:`CapturedProject` via ``model_copy(deep=True)``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import UnknownStageError


# ============================================================
# Stage / step tags
# ============================================================


class Stage(str, Enum):
    """The five ordered stages of the guided conversation."""

    IDEATION = "IDEATION"
    JOURNEY = "JOURNEY"
    DELIVERABLES = "DELIVERABLES"
    COMPLETION = "COMPLETION"
    COMPLETED = "COMPLETED"


class Step(str, Enum):
    """The unit the controller advances through.

    The three ideation sub-steps share the IDEATION stage; every other
    step is a stage of its own.
    """

    BIG_IDEA = "BIG_IDEA"
    ESSENTIAL_QUESTION = "ESSENTIAL_QUESTION"
    CHALLENGE = "CHALLENGE"
    JOURNEY = "JOURNEY"
    DELIVERABLES = "DELIVERABLES"
    COMPLETION = "COMPLETION"
    COMPLETED = "COMPLETED"

    @classmethod
    def coerce(cls, value: Any) -> "Step":
        """Return the :class:`Step` for *value* or raise UnknownStageError.

        Accepts a ``Step``, its name, or the ``IDEATION/BIG_IDEA`` form.
        A bare ``IDEATION`` resolves to its first sub-step.
        """
        if isinstance(value, Step):
            return value
        if isinstance(value, Stage):
            return STAGE_ENTRY[value]
        if not isinstance(value, str):
            raise UnknownStageError(value)
        tag = value.strip().upper().replace("-", "_").replace(" ", "_")
        if "/" in tag:
            stage_tag, _, step_tag = tag.partition("/")
            if step_tag not in cls.__members__:
                raise UnknownStageError(value)
            if STEP_STAGE[cls[step_tag]].value != stage_tag:
                raise UnknownStageError(value)
            return cls[step_tag]
        if tag in cls.__members__:
            return cls[tag]
        if tag in Stage.__members__:
            return STAGE_ENTRY[Stage[tag]]
        raise UnknownStageError(value)

    @property
    def stage(self) -> Stage:
        return STEP_STAGE[self]

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``'essential question'``."""
        return self.value.replace("_", " ").lower()


STEP_ORDER: List[Step] = list(Step)

STEP_STAGE: Dict[Step, Stage] = {
    Step.BIG_IDEA: Stage.IDEATION,
    Step.ESSENTIAL_QUESTION: Stage.IDEATION,
    Step.CHALLENGE: Stage.IDEATION,
    Step.JOURNEY: Stage.JOURNEY,
    Step.DELIVERABLES: Stage.DELIVERABLES,
    Step.COMPLETION: Stage.COMPLETION,
    Step.COMPLETED: Stage.COMPLETED,
}

STAGE_ENTRY: Dict[Stage, Step] = {
    Stage.IDEATION: Step.BIG_IDEA,
    Stage.JOURNEY: Step.JOURNEY,
    Stage.DELIVERABLES: Step.DELIVERABLES,
    Stage.COMPLETION: Step.COMPLETION,
    Stage.COMPLETED: Step.COMPLETED,
}


def next_step(step: Step) -> Optional[Step]:
    """Return the step after *step*, or None at the terminal step."""
    i = STEP_ORDER.index(step)
    if i == len(STEP_ORDER) - 1:
        return None
    return STEP_ORDER[i + 1]


def previous_step(step: Step) -> Optional[Step]:
    """Return the step before *step*, or None at the initial step."""
    i = STEP_ORDER.index(step)
    if i == 0:
        return None
    return STEP_ORDER[i - 1]


def require_exhaustive(table: Dict[Any, Any], members: Iterable[Any], name: str) -> None:
    """Fail at import time if a dispatch table misses a tag."""
    missing = [m for m in members if m not in table]
    if missing:
        raise RuntimeError(
            f"{name} has no entry for: {', '.join(str(m.value) for m in missing)}"
        )


require_exhaustive(STEP_STAGE, Step, "STEP_STAGE")
require_exhaustive(STAGE_ENTRY, Stage, "STAGE_ENTRY")


class Command(str, Enum):
    """Navigation commands a user can type instead of content."""

    GO_BACK = "go_back"
    CONTINUE = "continue"


class TurnKind(str, Enum):
    """Outcome of one conversation turn."""

    ADVANCED = "advanced"
    INPUT_REJECTED = "input_rejected"
    VALIDATION_INCOMPLETE = "validation_incomplete"
    EXTRACTION_AMBIGUOUS = "extraction_ambiguous"
    WENT_BACK = "went_back"


class BlueprintStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    READY = "ready"


# ============================================================
# Captured project record
# ============================================================


def _clean_text(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


class Phase(BaseModel):
    """One segment of the learning journey (e.g. ``Research & Analyze``)."""

    name: str
    activities: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> str:
        return _clean_text(v)

    @field_validator("activities", mode="before")
    @classmethod
    def _clean_activities(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [a for a in (_clean_text(x) for x in v) if a]


class Milestone(BaseModel):
    name: str


class Artifact(BaseModel):
    name: str


class Rubric(BaseModel):
    criteria: List[str] = Field(default_factory=list)


class Ideation(BaseModel):
    """Big idea, essential question and challenge.

    Attributes:
        big_idea:           Transferable concept anchoring the project.
        essential_question: Open-ended question driving inquiry.
        challenge:          Authentic task for a real audience.
    """

    model_config = ConfigDict(populate_by_name=True)

    big_idea: str = Field(default="", alias="bigIdea")
    essential_question: str = Field(default="", alias="essentialQuestion")
    challenge: str = ""

    @field_validator("big_idea", "essential_question", "challenge", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)


class Journey(BaseModel):
    phases: List[Phase] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


class Deliverables(BaseModel):
    milestones: List[Milestone] = Field(default_factory=list)
    artifacts: List[Artifact] = Field(default_factory=list)
    rubric: Rubric = Field(default_factory=Rubric)


class CapturedProject(BaseModel):
    """The accumulating record of everything extracted from the conversation."""

    ideation: Ideation = Field(default_factory=Ideation)
    journey: Journey = Field(default_factory=Journey)
    deliverables: Deliverables = Field(default_factory=Deliverables)

    def list_sizes(self) -> Dict[str, int]:
        """Sizes of the list fields, keyed by dotted path."""
        return {
            "journey.phases": len(self.journey.phases),
            "journey.resources": len(self.journey.resources),
            "deliverables.milestones": len(self.deliverables.milestones),
            "deliverables.artifacts": len(self.deliverables.artifacts),
            "deliverables.rubric.criteria": len(self.deliverables.rubric.criteria),
        }

    def is_empty(self) -> bool:
        i = self.ideation
        return not (i.big_idea or i.essential_question or i.challenge) and not any(
            self.list_sizes().values()
        )


class CaptureDelta(BaseModel):
    """Structured fields extracted from one accepted turn.

    Scalar fields left as None are not touched by the merge; list
    fields are appended.
    """

    big_idea: Optional[str] = None
    essential_question: Optional[str] = None
    challenge: Optional[str] = None
    phases: List[Phase] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    milestones: List[Milestone] = Field(default_factory=list)
    artifacts: List[Artifact] = Field(default_factory=list)
    criteria: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        """True when the turn produced no structured data at all."""
        scalars = (self.big_idea, self.essential_question, self.challenge)
        lists = (
            self.phases, self.resources, self.milestones, self.artifacts, self.criteria,
        )
        return all(s is None for s in scalars) and not any(lists)


# ============================================================
# Verdicts and turns
# ============================================================


class AssessmentResult(BaseModel):
    """Input Assessor verdict on raw text."""

    ok: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "AssessmentResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: str) -> "AssessmentResult":
        return cls(ok=False, reason=reason)


class ValidationResult(BaseModel):
    """Stage Validator verdict on the captured record.

    Attributes:
        ok:      True when the step's completeness gate is met.
        reason:  Specific missing-requirement text when not ok.
        missing: Requirement name -> amount still needed.
    """

    ok: bool
    reason: Optional[str] = None
    missing: Dict[str, int] = Field(default_factory=dict)


class ConversationTurn(BaseModel):
    """Ephemeral record of one turn; drives UI feedback and tests."""

    raw_text: str
    step: Step
    kind: TurnKind
    assessment: Optional[AssessmentResult] = None
    validation: Optional[ValidationResult] = None
    extraction_empty: bool = False
    did_advance: bool = False
    next_step: Step
    message: str = ""

    @property
    def reason(self) -> Optional[str]:
        """The rejection reason, whichever gate produced it."""
        if self.assessment is not None and not self.assessment.ok:
            return self.assessment.reason
        if self.validation is not None and not self.validation.ok:
            return self.validation.reason
        return None
