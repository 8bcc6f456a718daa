"""Data models, vocabulary and settings for the stage engine."""

from .models import (
    Artifact,
    AssessmentResult,
    BlueprintStatus,
    CaptureDelta,
    CapturedProject,
    Command,
    ConversationTurn,
    Deliverables,
    Ideation,
    Journey,
    Milestone,
    Phase,
    Rubric,
    Stage,
    Step,
    STEP_ORDER,
    TurnKind,
    ValidationResult,
    next_step,
    previous_step,
)
from .settings import AssessmentRules, CoachSettings, GateThresholds, load_settings

__all__ = [
    "Artifact",
    "AssessmentResult",
    "AssessmentRules",
    "BlueprintStatus",
    "CaptureDelta",
    "CapturedProject",
    "CoachSettings",
    "Command",
    "ConversationTurn",
    "Deliverables",
    "GateThresholds",
    "Ideation",
    "Journey",
    "Milestone",
    "Phase",
    "Rubric",
    "Stage",
    "Step",
    "STEP_ORDER",
    "TurnKind",
    "ValidationResult",
    "load_settings",
    "next_step",
    "previous_step",
]
