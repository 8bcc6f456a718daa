"""Engine settings: gate thresholds and assessment rules.

Defaults reproduce the acceptance contract of the browser client.  A
deployment may override any value from a YAML or JSON file::

    gates:
      min_phases: 4
    assessment:
      big_idea_min_length: 15

The path comes from ``load_settings(path)`` or the ``ALF_COACH_CONFIG``
environment variable.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from . import vocabulary

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ALF_COACH_CONFIG"


class GateThresholds(BaseModel):
    """Minimum completeness bar for leaving each step (Stage Validator)."""

    model_config = ConfigDict(extra="forbid")

    big_idea_min_length: int = Field(default=10, ge=1)
    essential_question_min_length: int = Field(default=10, ge=1)
    challenge_min_length: int = Field(default=15, ge=1)
    min_phases: int = Field(default=3, ge=1)
    min_milestones: int = Field(default=3, ge=1)
    min_artifacts: int = Field(default=1, ge=1)
    min_criteria: int = Field(default=3, ge=1)


class AssessmentRules(BaseModel):
    """Plausibility rules applied to raw text (Input Assessor)."""

    model_config = ConfigDict(extra="forbid")

    big_idea_min_length: int = Field(default=12, ge=1)
    big_idea_min_words: int = Field(default=3, ge=1)
    essential_question_min_length: int = Field(default=12, ge=1)
    challenge_min_length: int = Field(default=15, ge=1)
    min_list_segments: int = Field(
        default=3,
        ge=1,
        description="Segments a JOURNEY / DELIVERABLES answer must split into "
        "when it carries no explicit markers.",
    )
    action_verbs: List[str] = Field(default_factory=lambda: list(vocabulary.ACTION_VERBS))
    audience_nouns: List[str] = Field(default_factory=lambda: list(vocabulary.AUDIENCE_NOUNS))
    uncertainty_phrases: List[str] = Field(
        default_factory=lambda: list(vocabulary.UNCERTAINTY_PHRASES)
    )
    yes_no_openers: List[str] = Field(default_factory=lambda: list(vocabulary.YES_NO_OPENERS))
    confirmation_phrases: List[str] = Field(
        default_factory=lambda: list(vocabulary.CONFIRMATION_PHRASES)
    )


class CoachSettings(BaseModel):
    """Top-level engine configuration."""

    model_config = ConfigDict(extra="forbid")

    gates: GateThresholds = Field(default_factory=GateThresholds)
    assessment: AssessmentRules = Field(default_factory=AssessmentRules)
    max_resources_per_turn: int = Field(default=10, ge=1)


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Load a settings mapping from YAML or JSON."""
    with open(path, encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(path: Optional[Union[str, Path]] = None) -> CoachSettings:
    """Build :class:`CoachSettings` from *path*, the environment, or defaults."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return CoachSettings()
    cfg_path = Path(path)
    data = _read_config_file(cfg_path)
    settings = CoachSettings.model_validate(data)
    logger.info("Loaded coach settings from %s", cfg_path)
    return settings
