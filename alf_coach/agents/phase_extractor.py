"""LLM-assisted phase extraction.

Drop-in :class:`PhaseExtractor` for journey answers written as prose
("First we'll research, then brainstorm..."), which the delimiter
heuristic leaves empty.  The LLM only structures what the educator wrote;
it must not invent phases.

The client is injected and only needs ``extract(messages) -> dict``, so
tests pass a ``MagicMock``.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..config.models import Phase
from ..engine.capturer import DelimiterPhaseExtractor, PhaseExtractor
from ..errors import LLMError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output model
# ---------------------------------------------------------------------------

class PhaseExtractionResult(BaseModel):
    phases: List[Phase] = Field(default_factory=list)
    notes: str = Field(default="")


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

PHASE_SYSTEM_PROMPT = """\
You help an educator structure the learning journey of a project-based unit.

Rules:
- Return only phases the educator actually described. Never invent phases.
- Keep the educator's wording for phase names; shorten to 1-4 words if needed.
- Put the concrete things students do in "activities", in the order given.
- If the text describes no sequence of phases, return an empty list.
"""

PHASE_USER_PROMPT = """\
Journey description:
\"\"\"
{text}
\"\"\"

Return JSON:
{{
  "phases": [
    {{"name": "Research", "activities": ["interview experts", "site audit"]}}
  ],
  "notes": "anything you could not place"
}}
"""


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

class LLMPhaseExtractor(PhaseExtractor):
    """Phase extraction through an LLM, with the delimiter heuristic first.

    Structured input ("Research: audit, interview" lines) never reaches the
    LLM.  When the call fails and ``fallback_on_error`` is set, the
    heuristic's (empty) result is returned and the error is logged.
    """

    name = "llm"

    def __init__(
        self,
        llm_client: Any,
        system_prompt: Optional[str] = None,
        user_prompt: Optional[str] = None,
        fallback_on_error: bool = True,
        max_chars: int = 4000,
    ) -> None:
        self.llm = llm_client
        self._system_prompt = system_prompt or PHASE_SYSTEM_PROMPT
        self._user_prompt = user_prompt or PHASE_USER_PROMPT
        self._heuristic = DelimiterPhaseExtractor()
        self.fallback_on_error = fallback_on_error
        self.max_chars = max_chars

    def extract(self, text: str) -> List[Phase]:
        phases = self._heuristic.extract(text)
        if phases or not (text or "").strip():
            return phases

        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": self._user_prompt.format(text=text[: self.max_chars])},
        ]
        logger.info("LLMPhaseExtractor: sending %d chars of journey text", len(text))
        try:
            raw = self.llm.extract(messages)
        except LLMError as e:
            if not self.fallback_on_error:
                raise
            logger.warning("LLMPhaseExtractor: call failed, no phases extracted: %s", e)
            return []
        result = self._parse_result(raw)
        logger.info("LLMPhaseExtractor: received %d phases", len(result.phases))
        return result.phases

    def _parse_result(self, raw: Any) -> PhaseExtractionResult:
        if not isinstance(raw, dict):
            logger.warning("LLMPhaseExtractor: expected a JSON object, got %s", type(raw).__name__)
            return PhaseExtractionResult()
        items = raw.get("phases")
        if not isinstance(items, list):
            items = []
        phases: List[Phase] = []
        for index, item in enumerate(items):
            if isinstance(item, str):
                item = {"name": item}
            if not isinstance(item, dict):
                logger.warning("LLMPhaseExtractor: skipping malformed phase %r", item)
                continue
            try:
                phase = Phase(
                    name=item.get("name") or f"Phase {index + 1}",
                    activities=item.get("activities") or [],
                )
            except ValidationError as e:
                logger.warning("LLMPhaseExtractor: skipping invalid phase: %s", e)
                continue
            if phase.name:
                phases.append(phase)
        return PhaseExtractionResult(phases=phases, notes=str(raw.get("notes") or ""))
