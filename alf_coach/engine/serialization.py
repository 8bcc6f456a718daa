"""Flat-record serialization of :class:`CapturedProject`.

External stores keep the captured record as flat dotted keys::

    ideation.bigIdea                 -> "..."
    journey.phase.1.name             -> "Research"
    journey.phase.1.activities       -> "audit; interview"
    journey.resources                -> "..."
    deliverables.milestone.1         -> "..."
    deliverables.artifact.1          -> "..."
    deliverables.rubric.criteria     -> "clarity; evidence; impact"

List items are separated by ``;``; a ``;`` inside an item is
backslash-escaped.  A single
item containing a comma is written with a trailing ``;``; values with no
``;`` at all are older comma-separated records.

``hydrate_captured`` reads that form, the nested form, or a mix of both,
and never fails on missing keys.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..config.models import Artifact, CapturedProject, Ideation, Milestone, Phase

logger = logging.getLogger(__name__)

_PHASE_KEY_RE = re.compile(r"^journey\.phase\.(\d+)\.(name|activities)$")
_MILESTONE_KEY_RE = re.compile(r"^deliverables\.milestone\.(\d+)$")
_ARTIFACT_KEY_RE = re.compile(r"^deliverables\.artifact\.(\d+)$")
_ITEM_SEP_RE = re.compile(r"(?<!\\);")

_SCALAR_KEYS = {
    "ideation.bigIdea": "big_idea",
    "ideation.essentialQuestion": "essential_question",
    "ideation.challenge": "challenge",
}


def _join(items: List[str]) -> str:
    joined = "; ".join(item.replace(";", r"\;") for item in items)
    # A lone item with a comma is terminated so it is not read as a legacy list
    if len(items) == 1 and "," in joined:
        joined += ";"
    return joined


def _split(value: str) -> List[str]:
    # Older records used commas between items
    parts = _ITEM_SEP_RE.split(value) if _ITEM_SEP_RE.search(value) else value.split(",")
    return [p.replace(r"\;", ";").strip() for p in parts if p.strip()]


def serialize_captured(captured: CapturedProject) -> Dict[str, str]:
    """Flatten *captured* into dotted keys; empty fields are omitted."""
    record: Dict[str, str] = {}
    ideation = captured.ideation
    if ideation.big_idea:
        record["ideation.bigIdea"] = ideation.big_idea
    if ideation.essential_question:
        record["ideation.essentialQuestion"] = ideation.essential_question
    if ideation.challenge:
        record["ideation.challenge"] = ideation.challenge

    for index, phase in enumerate(captured.journey.phases, start=1):
        record[f"journey.phase.{index}.name"] = phase.name
        if phase.activities:
            record[f"journey.phase.{index}.activities"] = _join(phase.activities)
    if captured.journey.resources:
        record["journey.resources"] = _join(captured.journey.resources)

    d = captured.deliverables
    for index, milestone in enumerate(d.milestones, start=1):
        record[f"deliverables.milestone.{index}"] = milestone.name
    for index, artifact in enumerate(d.artifacts, start=1):
        record[f"deliverables.artifact.{index}"] = artifact.name
    if d.rubric.criteria:
        record["deliverables.rubric.criteria"] = _join(d.rubric.criteria)
    return record


def _hydrate_nested(record: Mapping[str, Any], base: CapturedProject) -> None:
    ideation = record.get("ideation")
    if isinstance(ideation, Mapping):
        try:
            base.ideation = Ideation.model_validate(dict(ideation))
        except ValidationError as e:
            logger.warning("Ignoring malformed ideation block: %s", e)

    journey = record.get("journey")
    if isinstance(journey, Mapping):
        phases = journey.get("phases")
        if isinstance(phases, list):
            base.journey.phases = [
                Phase(
                    name=str((p or {}).get("name") or f"Phase {i + 1}"),
                    activities=(p or {}).get("activities") or [],
                )
                for i, p in enumerate(phases)
                if isinstance(p, Mapping) or p is None
            ]
        resources = journey.get("resources")
        if isinstance(resources, list):
            base.journey.resources = [str(r) for r in resources if str(r).strip()]

    deliverables = record.get("deliverables")
    if isinstance(deliverables, Mapping):
        milestones = deliverables.get("milestones")
        if isinstance(milestones, list):
            base.deliverables.milestones = [
                Milestone(name=str(_name_of(m) or f"Milestone {i + 1}"))
                for i, m in enumerate(milestones)
            ]
        artifacts = deliverables.get("artifacts")
        if isinstance(artifacts, list):
            base.deliverables.artifacts = [
                Artifact(name=str(_name_of(a) or f"Artifact {i + 1}"))
                for i, a in enumerate(artifacts)
            ]
        rubric = deliverables.get("rubric")
        criteria = rubric.get("criteria") if isinstance(rubric, Mapping) else None
        if isinstance(criteria, list):
            base.deliverables.rubric.criteria = [str(c) for c in criteria if str(c).strip()]
        elif isinstance(criteria, str):
            base.deliverables.rubric.criteria = _split(criteria)


def _name_of(item: Any) -> Optional[str]:
    if isinstance(item, Mapping):
        return item.get("name")
    if isinstance(item, str):
        return item
    return None


def hydrate_captured(record: Optional[Mapping[str, Any]]) -> CapturedProject:
    """Rebuild a :class:`CapturedProject` from a stored record."""
    base = CapturedProject()
    if not record:
        return base
    _hydrate_nested(record, base)

    phases: Dict[int, Dict[str, Any]] = {}
    milestones: Dict[int, str] = {}
    artifacts: Dict[int, str] = {}
    for key, value in record.items():
        if not isinstance(value, str):
            continue
        if key in _SCALAR_KEYS:
            setattr(base.ideation, _SCALAR_KEYS[key], value)
            continue
        m = _PHASE_KEY_RE.match(key)
        if m:
            slot = phases.setdefault(int(m.group(1)), {"name": "", "activities": []})
            if m.group(2) == "name":
                slot["name"] = value
            else:
                slot["activities"] = _split(value)
            continue
        if key == "journey.resources":
            base.journey.resources = _split(value)
            continue
        m = _MILESTONE_KEY_RE.match(key)
        if m:
            milestones[int(m.group(1))] = value
            continue
        m = _ARTIFACT_KEY_RE.match(key)
        if m:
            artifacts[int(m.group(1))] = value
            continue
        if key == "deliverables.rubric.criteria":
            base.deliverables.rubric.criteria = _split(value)

    # Flat keys win over the nested form; gaps in numbering are closed
    if phases:
        base.journey.phases = [
            Phase(name=slot["name"] or f"Phase {n}", activities=slot["activities"])
            for n, slot in sorted(phases.items())
        ]
    if milestones:
        base.deliverables.milestones = [
            Milestone(name=name) for _, name in sorted(milestones.items()) if name.strip()
        ]
    if artifacts:
        base.deliverables.artifacts = [
            Artifact(name=name) for _, name in sorted(artifacts.items()) if name.strip()
        ]
    return base
