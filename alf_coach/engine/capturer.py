"""Data Capturer -- turns accepted text into structured project fields.

``capture(step, text)`` returns a :class:`CaptureDelta`; ``merge`` folds
it into a *new* :class:`CapturedProject` (copy-on-write, the input record
is never mutated).

Merge policy:
    - ideation scalars (big idea, essential question, challenge) are replaced
    - phases, resources, milestones, artifacts, criteria are appended,
      de-duplicated case-insensitively by name; a repeated phase name
      extends that phase's activities

Phase parsing is a delimiter heuristic, not NLP.  Prose such as
"First we'll research, then brainstorm..." carries no name/activity
separator and yields no phases.  That gap with the lenient assessor is
kept on purpose; swap in another :class:`PhaseExtractor` to change it.
"""
from __future__ import annotations

import abc
import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from ..config import vocabulary
from ..config.models import (
    Artifact,
    CaptureDelta,
    CapturedProject,
    Milestone,
    Phase,
    Step,
    require_exhaustive,
)
from ..config.settings import CoachSettings
from ..errors import ContractViolation

logger = logging.getLogger(__name__)

_BULLET_RE = re.compile(r"^\s*(?:[-*•]+|\d+[.)]|\(\d+\))\s*")
_SEGMENT_RE = re.compile(r"[,;]+")
# ':' / en dash / em dash anywhere; a hyphen only when it is not joining
# two words ("hands-on") and not the start of an arrow ("->").
_SEPARATOR_RE = re.compile(r"\s*(?::|–|—|(?<!\w)-(?!>)|-(?![\w>]))\s*")
_RESOURCES_RE = re.compile(r"\bresources?\s*:", re.IGNORECASE)
_HEADER_RE = re.compile(
    r"^(?:the\s+|our\s+)?(?:learning\s+)?(?:journey|phases?|steps?|stages?)$",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# List parsing
# ---------------------------------------------------------------------------

def _lines(text: str) -> List[str]:
    normalized = (text or "").replace("\r", "\n")
    stripped = (_BULLET_RE.sub("", line).strip() for line in normalized.split("\n"))
    return [line for line in stripped if line]


def _segments(text: str) -> List[str]:
    return [s.strip() for s in _SEGMENT_RE.split(text or "") if s.strip()]


def parse_list(text: str) -> List[str]:
    """Split free text into list items.

    Newlines are item boundaries when the text has more than one line;
    otherwise commas and semicolons are.  A single item comes back as a
    one-element list, empty text as an empty list.
    """
    lines = _lines(text)
    if len(lines) > 1:
        return lines
    segments = _segments(text)
    if len(segments) > 1:
        return segments
    stripped = (text or "").strip()
    return [stripped] if stripped else []


def split_name(item: str) -> Tuple[str, Optional[str]]:
    """Split *item* once at the first name/activity separator.

    Returns ``(name, rest)``; ``rest`` is None when no separator exists.
    """
    m = _SEPARATOR_RE.search(item)
    if not m:
        return item.strip(), None
    return item[: m.start()].strip(), item[m.end():].strip()


# ---------------------------------------------------------------------------
# Phase extraction strategies
# ---------------------------------------------------------------------------

class PhaseExtractor(abc.ABC):
    """Strategy that turns a journey answer into ordered phases."""

    name: str = "base"

    @abc.abstractmethod
    def extract(self, text: str) -> List[Phase]:
        """Return the phases found in *text* (possibly none)."""
        ...


class DelimiterPhaseExtractor(PhaseExtractor):
    """Default strategy: split on list boundaries and ``name: activities``.

    Multi-line text
        Every line is a phase.  ``Name: a, b`` gives name + activities;
        a line without separator is a bare phase name; an empty name
        becomes ``Phase {n}``.

    Single-line text
        Comma/semicolon segments.  A segment with a separator opens a new
        phase, a segment without one is an activity of the open phase.
        Segments before the first phase head have no structure and are
        dropped.
    """

    name = "delimiter"

    def extract(self, text: str) -> List[Phase]:
        lines = _lines(text)
        if len(lines) > 1:
            return self._from_lines(lines)
        return self._from_segments(_segments(text))

    def _from_lines(self, lines: List[str]) -> List[Phase]:
        phases: List[Phase] = []
        for index, item in enumerate(lines):
            name, rest = split_name(item)
            if rest is not None and not rest and _HEADER_RE.match(name):
                continue  # "Phases:" heading line
            phases.append(Phase(
                name=name or f"Phase {index + 1}",
                activities=_segments(rest) if rest else [],
            ))
        return phases

    def _from_segments(self, segments: List[str]) -> List[Phase]:
        phases: List[Phase] = []
        for segment in segments:
            name, rest = split_name(segment)
            if rest is None:
                if phases:
                    phases[-1].activities.append(segment)
                continue
            phases.append(Phase(
                name=name or f"Phase {len(phases) + 1}",
                activities=[rest] if rest else [],
            ))
        return phases


_DEFAULT_EXTRACTOR = DelimiterPhaseExtractor()


def parse_phases(text: str) -> List[Phase]:
    """Parse phases with the default delimiter heuristic."""
    return _DEFAULT_EXTRACTOR.extract(text)


# ---------------------------------------------------------------------------
# Deliverables
# ---------------------------------------------------------------------------

_KEYWORD_RES: Dict[str, "re.Pattern[str]"] = {
    bucket: vocabulary.word_pattern(words)
    for bucket, words in vocabulary.DELIVERABLE_KEYWORDS.items()
}

_LABEL_RE = re.compile(
    r"^\s*(?P<label>%s)\s*(?::|–|—|-)\s*(?P<rest>.*)$"
    % "|".join(
        re.escape(label)
        for label in sorted(
            (lbl for labels in vocabulary.DELIVERABLE_LABELS.values() for lbl in labels),
            key=len,
            reverse=True,
        )
    ),
    re.IGNORECASE | re.DOTALL,
)

_LABEL_BUCKET: Dict[str, str] = {
    label: bucket
    for bucket, labels in vocabulary.DELIVERABLE_LABELS.items()
    for label in labels
}


def classify_deliverable(item: str) -> str:
    """Bucket an unlabelled item: ``criterion``, ``artifact`` or ``milestone``."""
    if _KEYWORD_RES["criterion"].search(item):
        return "criterion"
    if _KEYWORD_RES["artifact"].search(item):
        return "artifact"
    return "milestone"


def parse_deliverables(text: str) -> Dict[str, List[str]]:
    """Sort a deliverables answer into ``milestone`` / ``artifact`` / ``criterion``.

    A section label (``Milestones:``, ``Artifact:``, ``Rubric:``...) sets
    the bucket for its own items and every unlabelled item after it.
    Before any label, items are classified by keyword.
    """
    buckets: Dict[str, List[str]] = {"milestone": [], "artifact": [], "criterion": []}
    lines = _lines(text)
    multi_line = len(lines) > 1
    items = lines if multi_line else _segments(text)
    current: Optional[str] = None

    for item in items:
        m = _LABEL_RE.match(item)
        if m:
            current = _LABEL_BUCKET[m.group("label").lower()]
            rest = m.group("rest").strip()
            parts = _segments(rest) if multi_line else ([rest] if rest else [])
            buckets[current].extend(parts)
            continue
        bucket = current or classify_deliverable(item)
        buckets[bucket].append(item)

    return {k: _dedupe(v) for k, v in buckets.items()}


def _dedupe(items: List[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for item in items:
        key = item.strip().casefold()
        if key and key not in seen:
            seen.add(key)
            out.append(item.strip())
    return out


def split_resources(text: str) -> Tuple[str, str]:
    """Split a journey answer into ``(phases_text, resources_text)``."""
    parts = _RESOURCES_RE.split(text or "", maxsplit=1)
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


# ---------------------------------------------------------------------------
# Capturer
# ---------------------------------------------------------------------------

class DataCapturer:
    """Extracts a :class:`CaptureDelta` from accepted text."""

    def __init__(
        self,
        settings: Optional[CoachSettings] = None,
        extractor: Optional[PhaseExtractor] = None,
    ) -> None:
        self.settings = settings or CoachSettings()
        self.extractor = extractor or _DEFAULT_EXTRACTOR
        self._handlers: Dict[Step, Callable[[str], CaptureDelta]] = {
            Step.BIG_IDEA: lambda t: CaptureDelta(big_idea=t.strip()),
            Step.ESSENTIAL_QUESTION: lambda t: CaptureDelta(essential_question=t.strip()),
            Step.CHALLENGE: lambda t: CaptureDelta(challenge=t.strip()),
            Step.JOURNEY: self._capture_journey,
            Step.DELIVERABLES: self._capture_deliverables,
            Step.COMPLETION: lambda t: CaptureDelta(),
            Step.COMPLETED: lambda t: CaptureDelta(),
        }
        require_exhaustive(self._handlers, Step, "DataCapturer handlers")

    def capture(self, step, text: str) -> CaptureDelta:
        step = Step.coerce(step)
        delta = self._handlers[step](text or "")
        logger.debug("capture step=%s empty=%s", step.value, delta.is_empty())
        return delta

    def _capture_journey(self, text: str) -> CaptureDelta:
        body, resources_text = split_resources(text)
        phases = self.extractor.extract(body)
        resources = parse_list(resources_text)[: self.settings.max_resources_per_turn]
        if body.strip() and not phases:
            logger.warning(
                "Phase extractor '%s' found no phases in %d chars of input",
                self.extractor.name,
                len(body.strip()),
            )
        return CaptureDelta(phases=phases, resources=resources)

    def _capture_deliverables(self, text: str) -> CaptureDelta:
        parsed = parse_deliverables(text)
        return CaptureDelta(
            milestones=[Milestone(name=n) for n in parsed["milestone"]],
            artifacts=[Artifact(name=n) for n in parsed["artifact"]],
            criteria=parsed["criterion"],
        )


def capture(step, text: str, settings: Optional[CoachSettings] = None) -> CaptureDelta:
    """Module-level shortcut using the delimiter phase extractor."""
    return DataCapturer(settings).capture(step, text)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def merge(captured: CapturedProject, delta: CaptureDelta) -> CapturedProject:
    """Return a new record with *delta* folded into *captured*."""
    if captured is None:
        raise ContractViolation("merge() needs a CapturedProject, got None")
    nxt = captured.model_copy(deep=True)

    if delta.big_idea is not None:
        nxt.ideation.big_idea = delta.big_idea
    if delta.essential_question is not None:
        nxt.ideation.essential_question = delta.essential_question
    if delta.challenge is not None:
        nxt.ideation.challenge = delta.challenge

    by_name = {p.name.casefold(): p for p in nxt.journey.phases}
    for phase in delta.phases:
        existing = by_name.get(phase.name.casefold())
        if existing is None:
            new_phase = phase.model_copy(deep=True)
            nxt.journey.phases.append(new_phase)
            by_name[new_phase.name.casefold()] = new_phase
            continue
        known = {a.casefold() for a in existing.activities}
        for activity in phase.activities:
            if activity.casefold() not in known:
                existing.activities.append(activity)
                known.add(activity.casefold())

    _append_unique(nxt.journey.resources, delta.resources, key=str)
    _append_unique(nxt.deliverables.rubric.criteria, delta.criteria, key=str)
    _append_unique(
        nxt.deliverables.milestones, delta.milestones, key=lambda m: m.name
    )
    _append_unique(
        nxt.deliverables.artifacts, delta.artifacts, key=lambda a: a.name
    )
    return nxt


def _append_unique(existing: list, new: list, key: Callable) -> None:
    """Append items of *new* whose key is not already in *existing*.

    Existing entries are never removed, so list fields only grow.
    """
    seen = {key(item).casefold() for item in existing}
    for item in new:
        k = key(item).casefold()
        if k and k not in seen:
            existing.append(item.model_copy() if hasattr(item, "model_copy") else item)
            seen.add(k)
