"""Stage engine: assessor, capturer, validator and controller."""

from .assessor import InputAssessor, assess
from .capturer import (
    DataCapturer,
    DelimiterPhaseExtractor,
    PhaseExtractor,
    capture,
    merge,
    parse_deliverables,
    parse_list,
    parse_phases,
)
from .coaching import (
    fallback_for_step,
    stage_guide,
    stage_suggestions,
    summarize_captured,
    transition_message,
)
from .controller import StageController, parse_command
from .serialization import hydrate_captured, serialize_captured
from .validator import StageValidator, validate

__all__ = [
    "DataCapturer",
    "DelimiterPhaseExtractor",
    "InputAssessor",
    "PhaseExtractor",
    "StageController",
    "StageValidator",
    "assess",
    "capture",
    "fallback_for_step",
    "hydrate_captured",
    "merge",
    "parse_command",
    "parse_deliverables",
    "parse_list",
    "parse_phases",
    "serialize_captured",
    "stage_guide",
    "stage_suggestions",
    "summarize_captured",
    "transition_message",
    "validate",
]
