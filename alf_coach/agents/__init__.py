"""Optional LLM-backed helpers for the stage engine."""

from .llm_client import LLMClient
from .phase_extractor import LLMPhaseExtractor, PhaseExtractionResult

__all__ = ["LLMClient", "LLMPhaseExtractor", "PhaseExtractionResult"]
