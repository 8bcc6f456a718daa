"""
ALF Coach - Stage Vocabulary
============================

Word lists used by the local (non-AI) input checks and the deliverables
classifier.  They are plain data so a deployment can override any of them
through :class:`~alf_coach.config.settings.AssessmentRules`.

* **ACTION_VERBS** -- verbs that make a challenge task-oriented.  Matched
  with their common inflections (designs, designed, designing).

* **AUDIENCE_NOUNS** -- real audiences / stakeholders a challenge can
  serve.  Matched as whole words or phrases.

* **UNCERTAINTY_PHRASES** -- answers that mean "I have no content yet".

* **YES_NO_OPENERS** -- first words that turn a question into a closed
  yes/no question.

* **DELIVERABLE_KEYWORDS** -- keywords that sort a deliverables item into
  a bucket, plus the section labels a user may type
  (``Milestones: ...``).
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List


# ====================================================================
# 1.  Ideation
# ====================================================================

ACTION_VERBS: List[str] = [
    "design",
    "create",
    "build",
    "develop",
    "propose",
    "produce",
    "prototype",
    "plan",
    "launch",
    "write",
    "present",
    "pitch",
    "organize",
    "improve",
    "solve",
    "make",
    "construct",
    "craft",
    "curate",
    "host",
    "advocate",
    "publish",
    "compose",
    "invent",
    "redesign",
]

AUDIENCE_NOUNS: List[str] = [
    "community",
    "communities",
    "peer",
    "peers",
    "family",
    "families",
    "parent",
    "parents",
    "board",
    "school board",
    "city council",
    "council",
    "neighbor",
    "neighbors",
    "neighbour",
    "neighbours",
    "resident",
    "residents",
    "stakeholder",
    "stakeholders",
    "audience",
    "public",
    "museum",
    "business",
    "businesses",
    "leader",
    "leaders",
    "official",
    "officials",
    "expert",
    "experts",
    "classmates",
    "younger students",
    "visitors",
    "partner",
    "partners",
    "organization",
    "organizations",
    "nonprofit",
    "customers",
    "users",
    "mayor",
    "legislators",
    "exhibition",
    "local",
]

UNCERTAINTY_PHRASES: List[str] = [
    "i don't know",
    "i dont know",
    "don't know",
    "not sure",
    "no idea",
    "idk",
    "unsure",
    "no clue",
]

YES_NO_OPENERS: List[str] = ["is", "are", "do", "does", "can", "will"]


# ====================================================================
# 2.  Journey
# ====================================================================

PHASE_MARKER_WORDS: List[str] = ["phase", "phases", "step", "steps", "stage", "stages"]

PHASE_ARROWS: List[str] = ["->", "=>", "→", "⟶"]


# ====================================================================
# 3.  Deliverables
# ====================================================================
# Structure:  bucket -> keywords.  Criterion words win over artifact
# words, artifact words win over the milestone default.

DELIVERABLE_KEYWORDS: Dict[str, List[str]] = {
    "criterion": ["criterion", "criteria", "rubric", "level", "performance"],
    "artifact": [
        "artifact",
        "deliverable",
        "product",
        "presentation",
        "prototype",
        "exhibit",
        "showcase",
    ],
    "milestone": ["milestone", "checkpoint", "draft", "due", "week"],
}

DELIVERABLE_LABELS: Dict[str, List[str]] = {
    "milestone": ["milestones", "milestone", "checkpoints", "checkpoint"],
    "artifact": [
        "artifacts",
        "artifact",
        "deliverables",
        "deliverable",
        "products",
        "product",
        "final products",
        "final product",
    ],
    "criterion": ["rubric criteria", "rubric", "criteria", "criterion"],
}

CONFIRMATION_PHRASES: List[str] = [
    "confirm",
    "confirmed",
    "done",
    "finalize",
    "finalise",
    "looks good",
    "yes",
    "approve",
    "approved",
]


# ====================================================================
# Helpers
# ====================================================================


def inflections(word: str) -> List[str]:
    """Return *word* with its -s / -ed / -ing forms.

    >>> inflections("design")
    ['design', 'designs', 'designed', 'designing']
    >>> inflections("create")
    ['create', 'creates', 'created', 'creating']
    """
    w = word.lower()
    if w.endswith("e"):
        return [w, w + "s", w + "d", w[:-1] + "ing"]
    if w.endswith(("sh", "ch", "x", "s")):
        return [w, w + "es", w + "ed", w + "ing"]
    vowels = "aeiou"
    if (
        3 <= len(w) <= 4
        and w[-1] not in vowels + "wxy"
        and w[-2] in vowels
        and w[-3] not in vowels
    ):
        # plan -> planned, planning
        return [w, w + "s", w + w[-1] + "ed", w + w[-1] + "ing"]
    return [w, w + "s", w + "ed", w + "ing"]


def word_pattern(words: Iterable[str], inflect: bool = False) -> "re.Pattern[str]":
    """Compile a case-insensitive whole-word alternation over *words*."""
    forms: List[str] = []
    for w in words:
        forms.extend(inflections(w) if inflect else [w.lower()])
    # Longest first so phrases win over their prefixes
    forms = sorted(set(forms), key=len, reverse=True)
    body = "|".join(re.escape(f) for f in forms)
    return re.compile(rf"(?<![\w'])(?:{body})(?![\w'])", re.IGNORECASE)
