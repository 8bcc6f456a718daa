"""Coaching session schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from alf_coach.config.models import (
    AssessmentResult,
    BlueprintStatus,
    CapturedProject,
    Stage,
    Step,
    TurnKind,
    ValidationResult,
)


class SessionCreate(BaseModel):
    """Request to start a new coaching session.

    ``record`` resumes from a stored captured record (flat or nested);
    the session then starts at the first incomplete step.
    """

    project_topic: str = Field(default="", max_length=200)
    duration: Optional[str] = Field(default=None, max_length=50)
    record: Optional[Dict[str, object]] = None


class TurnRequest(BaseModel):
    """One user message."""

    text: str = Field(..., max_length=10000)


class BackRequest(BaseModel):
    """Go back one step, or to a named earlier ``target`` step."""

    target: Optional[str] = None


class TurnResponse(BaseModel):
    """Outcome of one turn."""

    kind: TurnKind
    step: Step
    next_step: Step
    did_advance: bool
    extraction_empty: bool = False
    message: str = ""
    reason: Optional[str] = None
    assessment: Optional[AssessmentResult] = None
    validation: Optional[ValidationResult] = None


class SessionResponse(BaseModel):
    """Current session state."""

    id: str
    project_topic: str = ""
    duration: Optional[str] = None
    step: Step
    stage: Stage
    status: BlueprintStatus
    captured: CapturedProject
    turns: int = 0
    created_at: datetime
    updated_at: datetime


class SessionExport(BaseModel):
    """Flat record plus plain-text summary."""

    id: str
    status: BlueprintStatus
    complete: bool
    record: Dict[str, str]
    summary: str
    history: List[TurnResponse] = Field(default_factory=list)
