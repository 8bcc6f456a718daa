"""Input Assessor -- fast, local plausibility check on raw user text.

Runs before any extraction so the user gets a stage-specific
correction prompt instead of silently losing a turn.  Pure function of
``(step, text)``; no AI, no I/O.

The JOURNEY and DELIVERABLES checks are deliberately lenient: they only
screen out obviously unusable input.  The Data Capturer does the real
structural work, so text can pass here and still yield nothing.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Optional

from ..config import vocabulary
from ..config.models import AssessmentResult, Step, require_exhaustive
from ..config.settings import AssessmentRules, CoachSettings

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[\w'’-]+")
_LIST_SEGMENT_RE = re.compile(r"[\r\n,]+")


def _normalise(text: str) -> str:
    return (text or "").replace("’", "'").strip()


def count_segments(text: str) -> int:
    """Number of non-empty segments when split on newlines and commas."""
    return len([s for s in _LIST_SEGMENT_RE.split(text) if s.strip()])


class InputAssessor:
    """Stage-aware acceptance rules for raw text."""

    def __init__(self, settings: Optional[CoachSettings] = None) -> None:
        self.settings = settings or CoachSettings()
        rules = self.rules
        self._action_re = vocabulary.word_pattern(rules.action_verbs, inflect=True)
        self._audience_re = vocabulary.word_pattern(rules.audience_nouns)
        self._uncertain_re = vocabulary.word_pattern(rules.uncertainty_phrases)
        self._yes_no_re = re.compile(
            r"^(?:%s)\b" % "|".join(re.escape(w) for w in rules.yes_no_openers),
            re.IGNORECASE,
        )
        self._phase_word_re = vocabulary.word_pattern(vocabulary.PHASE_MARKER_WORDS)
        deliverable_words = [
            w for words in vocabulary.DELIVERABLE_KEYWORDS.values() for w in words
        ]
        deliverable_words += [
            w for words in vocabulary.DELIVERABLE_LABELS.values() for w in words
        ]
        self._deliverable_re = vocabulary.word_pattern(deliverable_words)
        self._confirm_phrases = {p.lower() for p in rules.confirmation_phrases}

        self._checks: Dict[Step, Callable[[str], AssessmentResult]] = {
            Step.BIG_IDEA: self._assess_big_idea,
            Step.ESSENTIAL_QUESTION: self._assess_essential_question,
            Step.CHALLENGE: self._assess_challenge,
            Step.JOURNEY: self._assess_journey,
            Step.DELIVERABLES: self._assess_deliverables,
            Step.COMPLETION: self._assess_completion,
            Step.COMPLETED: self._assess_completed,
        }
        require_exhaustive(self._checks, Step, "InputAssessor checks")

    @property
    def rules(self) -> AssessmentRules:
        return self.settings.assessment

    def assess(self, step, text: str) -> AssessmentResult:
        """Return whether *text* is acceptable input for *step*.

        Raises UnknownStageError when *step* is not a known tag.
        """
        step = Step.coerce(step)
        cleaned = _normalise(text)
        if not cleaned and step is not Step.COMPLETED:
            result = AssessmentResult.reject(
                f"Type your {step.label} so we can capture it."
            )
        else:
            result = self._checks[step](cleaned)
        logger.debug(
            "assess step=%s ok=%s reason=%s", step.value, result.ok, result.reason
        )
        return result

    # ------------------------------------------------------------------
    # Ideation
    # ------------------------------------------------------------------

    def _assess_big_idea(self, text: str) -> AssessmentResult:
        if self._uncertain_re.search(text):
            return AssessmentResult.reject(
                "That's okay, start from a concept you care about, such as "
                "'How systems change over time'. We can refine it together."
            )
        if "?" in text:
            return AssessmentResult.reject(
                "State a concept, not a question. Save questions for the "
                "Essential Question step."
            )
        if len(_WORD_RE.findall(text)) < self.rules.big_idea_min_words:
            return AssessmentResult.reject(
                f"Expand your Big Idea to at least {self.rules.big_idea_min_words} "
                "words, e.g. 'How communities adapt to change'."
            )
        if len(text) < self.rules.big_idea_min_length:
            return AssessmentResult.reject(
                "Give your Big Idea a little more substance "
                f"(at least {self.rules.big_idea_min_length} characters)."
            )
        return AssessmentResult.accept()

    def _assess_essential_question(self, text: str) -> AssessmentResult:
        if not text.endswith("?"):
            return AssessmentResult.reject(
                "End your Essential Question with a question mark."
            )
        if self._yes_no_re.match(text):
            return AssessmentResult.reject(
                "That can be answered with yes or no. Reframe it as an open-ended "
                "question starting with 'How', 'Why' or 'What'."
            )
        if len(text) < self.rules.essential_question_min_length:
            return AssessmentResult.reject(
                "Make your Essential Question more specific "
                f"(at least {self.rules.essential_question_min_length} characters)."
            )
        return AssessmentResult.accept()

    def _assess_challenge(self, text: str) -> AssessmentResult:
        if len(text) < self.rules.challenge_min_length:
            return AssessmentResult.reject(
                "Describe the Challenge in a full phrase: what students will do "
                f"and for whom (at least {self.rules.challenge_min_length} characters)."
            )
        has_action = bool(self._action_re.search(text))
        has_audience = bool(self._audience_re.search(text))
        if not has_action and not has_audience:
            return AssessmentResult.reject(
                "Name what students will do (design, create, propose...) and who it "
                "is for (community, families, school board...)."
            )
        if not has_action:
            return AssessmentResult.reject(
                "Add an action verb so students know what to do, e.g. 'Design...', "
                "'Build...' or 'Propose...'."
            )
        if not has_audience:
            return AssessmentResult.reject(
                "Name a real audience for the work, e.g. the local community, "
                "families, or the school board."
            )
        return AssessmentResult.accept()

    # ------------------------------------------------------------------
    # Journey / deliverables
    # ------------------------------------------------------------------

    def has_phase_markers(self, text: str) -> bool:
        if any(arrow in text for arrow in vocabulary.PHASE_ARROWS):
            return True
        return bool(self._phase_word_re.search(text))

    def _assess_journey(self, text: str) -> AssessmentResult:
        if self.has_phase_markers(text):
            return AssessmentResult.accept()
        if count_segments(text) >= self.rules.min_list_segments:
            return AssessmentResult.accept()
        return AssessmentResult.reject(
            f"List at least {self.rules.min_list_segments} phases, one per line or "
            "separated by commas, e.g. 'Research: interviews, site audit'."
        )

    def _assess_deliverables(self, text: str) -> AssessmentResult:
        if self._deliverable_re.search(text):
            return AssessmentResult.accept()
        if count_segments(text) >= self.rules.min_list_segments:
            return AssessmentResult.accept()
        return AssessmentResult.reject(
            "List your milestones, at least one final artifact, and rubric "
            "criteria, one per line or separated by commas."
        )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _assess_completion(self, text: str) -> AssessmentResult:
        phrase = text.lower().rstrip(".!")
        if phrase in self._confirm_phrases:
            return AssessmentResult.accept()
        return AssessmentResult.reject(
            "Reply 'confirm' to finalize the blueprint, or 'go back' to edit an "
            "earlier stage."
        )

    def _assess_completed(self, text: str) -> AssessmentResult:
        return AssessmentResult.reject(
            "This blueprint is complete. Start a new project to design another one."
        )


def assess(step, text: str, settings: Optional[CoachSettings] = None) -> AssessmentResult:
    """Module-level shortcut for :meth:`InputAssessor.assess`."""
    return InputAssessor(settings).assess(step, text)
