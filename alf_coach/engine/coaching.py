"""Coaching copy shown around each step.

Static text only; the AI-generated conversational reply lives outside the
engine.  Every table is keyed by :class:`Step` and checked for coverage at
import time.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from pydantic import BaseModel

from ..config.models import CapturedProject, Step, require_exhaustive


class StageGuide(BaseModel):
    what: str
    why: str
    tip: str


STAGE_GUIDES: Dict[Step, StageGuide] = {
    Step.BIG_IDEA: StageGuide(
        what="Define the Big Idea, a transferable concept that anchors the project.",
        why="It keeps work meaningful and coherent, and guides every decision that follows.",
        tip="Write a short, strong concept; we can refine language later.",
    ),
    Step.ESSENTIAL_QUESTION: StageGuide(
        what="Shape an Essential Question that invites sustained inquiry.",
        why="A powerful question drives curiosity and connects the Big Idea to action.",
        tip="Make it open-ended, debate-worthy, and tied to your Big Idea.",
    ),
    Step.CHALLENGE: StageGuide(
        what="Define an authentic Challenge for a real audience.",
        why="It creates purpose and raises quality by bringing work to the world.",
        tip="Name the audience and outcome; keep scope achievable in your timeframe.",
    ),
    Step.JOURNEY: StageGuide(
        what="Outline the learning phases (Analyze, Brainstorm, Prototype, Evaluate) "
             "with key activities.",
        why="A clear journey builds momentum and manages complexity.",
        tip="Write one phase per line as 'Name: activity, activity'. 3-4 phases are enough.",
    ),
    Step.DELIVERABLES: StageGuide(
        what="List final artifacts, 3+ milestones, and a simple rubric.",
        why="Clarity on outcomes and quality supports student success.",
        tip="Use labels: 'Milestones: ...', 'Artifacts: ...', 'Rubric: ...'.",
    ),
    Step.COMPLETION: StageGuide(
        what="Review the blueprint and confirm it.",
        why="A final read-through catches gaps before the project goes to students.",
        tip="Reply 'confirm' when it looks right, or 'go back' to edit.",
    ),
    Step.COMPLETED: StageGuide(
        what="Your blueprint is complete.",
        why="It is ready to share, export, or adapt.",
        tip="Start a new project to design another one.",
    ),
}

STAGE_SUGGESTIONS: Dict[Step, List[str]] = {
    Step.BIG_IDEA: [
        "How systems change over time",
        "How innovation emerges from constraints",
        "The relationship between people and place",
    ],
    Step.ESSENTIAL_QUESTION: [
        "How might we reduce local waste?",
        "What makes a solution fair for everyone?",
        "How do policies shape everyday choices?",
    ],
    Step.CHALLENGE: [
        "Design an evidence-based proposal for city council",
        "Prototype a solution for a school exhibition",
        "Produce a community resource to shift behaviors",
    ],
    Step.JOURNEY: [
        "Research: interviews, site audit",
        "Ideate: brainstorm, sketch",
        "Prototype: build, test",
        "Share: rehearse, present",
    ],
    Step.DELIVERABLES: [
        "Milestones: research brief, prototype review, rehearsal",
        "Artifacts: public pitch deck",
        "Rubric: clarity, evidence, impact",
    ],
    Step.COMPLETION: ["confirm", "go back"],
    Step.COMPLETED: [],
}


def _fallback_eq(captured: CapturedProject) -> str:
    big_idea = captured.ideation.big_idea
    if big_idea:
        return (
            f"Think about your Big Idea: \"{big_idea}\". What open-ended question "
            "will drive inquiry toward it?"
        )
    return "Let's craft an Essential Question. Make it open-ended and debate-worthy."


def _fallback_challenge(captured: CapturedProject) -> str:
    eq = captured.ideation.essential_question
    if eq:
        return (
            f"Your Essential Question is \"{eq}\". What real-world challenge will "
            "students tackle to answer it?"
        )
    return (
        "Define a concrete challenge for a real audience. Include who benefits "
        "and what they receive."
    )


FALLBACK_PROMPTS: Dict[Step, Callable[[CapturedProject], str]] = {
    Step.BIG_IDEA: lambda c: (
        "Let's capture a clear Big Idea that students can carry with them. "
        "What core concept sums up your project?"
    ),
    Step.ESSENTIAL_QUESTION: _fallback_eq,
    Step.CHALLENGE: _fallback_challenge,
    Step.JOURNEY: lambda c: (
        "Outline 3-4 phases for the learning journey, one per line, each with "
        "1-2 key activities."
    ),
    Step.DELIVERABLES: lambda c: (
        "List 3+ milestones, the final artifacts students will produce, and 3-6 "
        "rubric criteria that show quality."
    ),
    Step.COMPLETION: lambda c: (
        "Here is your blueprint. Reply 'confirm' to finalize it, or 'go back' to edit."
    ),
    Step.COMPLETED: lambda c: "Your blueprint is complete.",
}

TRANSITION_MESSAGES: Dict[Step, Optional[str]] = {
    Step.BIG_IDEA: "Big Idea captured. Next up: craft an Essential Question that invites inquiry.",
    Step.ESSENTIAL_QUESTION: "Excellent Essential Question. Let's define the authentic Challenge.",
    Step.CHALLENGE: "Challenge locked in. Outline the journey phases so we can see the path.",
    Step.JOURNEY: "Journey mapped. Finish strong with deliverables, milestones, and rubric criteria.",
    Step.DELIVERABLES: "Deliverables set. Review the full blueprint and confirm it.",
    Step.COMPLETION: "Blueprint confirmed. It is ready to share.",
    Step.COMPLETED: None,
}

for _table, _name in (
    (STAGE_GUIDES, "STAGE_GUIDES"),
    (STAGE_SUGGESTIONS, "STAGE_SUGGESTIONS"),
    (FALLBACK_PROMPTS, "FALLBACK_PROMPTS"),
    (TRANSITION_MESSAGES, "TRANSITION_MESSAGES"),
):
    require_exhaustive(_table, Step, _name)


def stage_guide(step) -> StageGuide:
    return STAGE_GUIDES[Step.coerce(step)]


def stage_suggestions(step) -> List[str]:
    return list(STAGE_SUGGESTIONS[Step.coerce(step)])


def fallback_for_step(step, captured: CapturedProject, gating_reason: Optional[str] = None) -> str:
    """Prompt for *step*, with the gate's reason appended when given."""
    base = FALLBACK_PROMPTS[Step.coerce(step)](captured)
    if not gating_reason:
        return base
    reason = " ".join(gating_reason.split())
    if not reason.endswith((".", "!", "?")):
        reason += "."
    return f"{base} {reason}"


def transition_message(step) -> Optional[str]:
    """Message shown when *step* is completed, or None."""
    return TRANSITION_MESSAGES[Step.coerce(step)]


def summarize_captured(
    captured: CapturedProject,
    step=None,
    project_topic: str = "",
) -> str:
    """Plain-text blueprint summary for review screens and prompts."""
    lines: List[str] = []
    if step is not None:
        lines.append(f"Current Stage: {Step.coerce(step).label}")
    if project_topic:
        lines.append(f"Project Topic: {project_topic}")
    ideation = captured.ideation
    if ideation.big_idea:
        lines.append(f"Big Idea: {ideation.big_idea}")
    if ideation.essential_question:
        lines.append(f"Essential Question: {ideation.essential_question}")
    if ideation.challenge:
        lines.append(f"Challenge: {ideation.challenge}")

    if captured.journey.phases:
        phase_lines = []
        for index, phase in enumerate(captured.journey.phases, start=1):
            activities = ""
            if phase.activities:
                activities = f" (activities: {', '.join(phase.activities)})"
            phase_lines.append(f"Phase {index}: {phase.name}{activities}")
        lines.append("Journey Plan:\n" + "\n".join(phase_lines))
    if captured.journey.resources:
        lines.append(f"Resources: {', '.join(captured.journey.resources)}")

    d = captured.deliverables
    if d.milestones:
        lines.append(f"Milestones: {', '.join(m.name for m in d.milestones)}")
    if d.artifacts:
        lines.append(f"Artifacts: {', '.join(a.name for a in d.artifacts)}")
    if d.rubric.criteria:
        lines.append(f"Rubric Criteria: {', '.join(d.rubric.criteria)}")

    if captured.is_empty():
        lines.append("No substantive entries captured yet.")
    return "\n".join(lines)
