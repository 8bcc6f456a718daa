"""Tests for the Stage Controller turn pipeline."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from alf_coach.config.models import (
    BlueprintStatus,
    Command,
    Stage,
    Step,
    TurnKind,
)
from alf_coach.engine.controller import StageController, parse_command
from alf_coach.engine.serialization import serialize_captured
from alf_coach.errors import ContractViolation, UnknownStageError

from samples import (
    BIG_IDEA,
    CHALLENGE,
    DELIVERABLES_TEXT,
    ESSENTIAL_QUESTION,
    JOURNEY_TEXT,
    PROSE_JOURNEY,
    build_full_project,
)


# ===================================================================
# End-to-end
# ===================================================================

class TestEndToEnd:
    def test_ideation_lands_on_journey(self, controller) -> None:
        assert controller.step is Step.BIG_IDEA
        turns = [controller.submit(t) for t in (BIG_IDEA, ESSENTIAL_QUESTION, CHALLENGE)]

        assert [t.kind for t in turns] == [TurnKind.ADVANCED] * 3
        assert [t.next_step for t in turns] == [
            Step.ESSENTIAL_QUESTION, Step.CHALLENGE, Step.JOURNEY,
        ]
        assert controller.step is Step.JOURNEY
        assert controller.stage is Stage.JOURNEY
        ideation = controller.captured.ideation
        assert ideation.big_idea == BIG_IDEA
        assert ideation.essential_question == ESSENTIAL_QUESTION
        assert ideation.challenge == CHALLENGE

    def test_full_conversation(self, completion_controller) -> None:
        c = completion_controller
        assert c.step is Step.COMPLETION
        assert c.status is BlueprintStatus.READY

        turn = c.submit("confirm")
        assert turn.kind is TurnKind.ADVANCED
        assert turn.next_step is Step.COMPLETED
        assert c.is_complete
        assert "confirmed" in turn.message

    def test_stage_stays_ideation_across_sub_steps(self, controller) -> None:
        controller.submit(BIG_IDEA)
        assert controller.step is Step.ESSENTIAL_QUESTION
        assert controller.stage is Stage.IDEATION

    def test_transition_message_then_next_prompt(self, controller) -> None:
        turn = controller.submit(BIG_IDEA)
        assert turn.message.startswith("Big Idea captured.")
        assert BIG_IDEA in turn.message


# ===================================================================
# Holding outcomes
# ===================================================================

class TestHolds:
    def test_rejected_input_captures_nothing(self, controller) -> None:
        turn = controller.submit("idk")
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert turn.did_advance is False
        assert turn.next_step is Step.BIG_IDEA
        assert turn.reason == turn.assessment.reason
        assert turn.validation is None
        assert controller.captured.is_empty()

    def test_yes_no_question_held(self, controller) -> None:
        controller.submit(BIG_IDEA)
        turn = controller.submit("Is recycling good?")
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert controller.step is Step.ESSENTIAL_QUESTION

    def test_prose_journey_is_extraction_ambiguous(self, journey_controller, caplog) -> None:
        with caplog.at_level("WARNING"):
            turn = journey_controller.submit(PROSE_JOURNEY)
        assert turn.assessment.ok is True
        assert turn.kind is TurnKind.EXTRACTION_AMBIGUOUS
        assert turn.extraction_empty is True
        assert turn.validation.ok is False
        assert turn.reason == "Add 3 more phases (0 of 3 captured)."
        assert journey_controller.step is Step.JOURNEY
        assert "No structured journey data" in caplog.text

    def test_partial_journey_is_validation_incomplete(self, journey_controller) -> None:
        turn = journey_controller.submit("Research: interviews, site audit\nIdeate: brainstorm")
        assert turn.kind is TurnKind.VALIDATION_INCOMPLETE
        assert turn.extraction_empty is False
        assert turn.validation.missing == {"phases": 1}
        assert "Add 1 more phase (2 of 3 captured)." in turn.message

    def test_journey_completed_over_two_turns(self, journey_controller) -> None:
        journey_controller.submit("Research: interviews, site audit\nIdeate: brainstorm")
        before = journey_controller.captured.list_sizes()
        turn = journey_controller.submit("Prototype: build, test, refine")
        after = journey_controller.captured.list_sizes()
        assert turn.kind is TurnKind.ADVANCED
        assert all(after[k] >= before[k] for k in before)
        assert after["journey.phases"] == 3

    def test_completion_requires_confirmation(self, completion_controller) -> None:
        turn = completion_controller.submit("hmm, not yet")
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert completion_controller.step is Step.COMPLETION

    def test_completed_is_terminal(self, completion_controller) -> None:
        completion_controller.submit("confirm")
        for text in ("confirm", "Another idea about change", ""):
            turn = completion_controller.submit(text)
            assert turn.kind is TurnKind.INPUT_REJECTED
            assert turn.reason
        assert completion_controller.step is Step.COMPLETED


# ===================================================================
# Navigation
# ===================================================================

class TestNavigation:
    @pytest.mark.parametrize("text,command", [
        ("go back", Command.GO_BACK),
        ("Back", Command.GO_BACK),
        ("  GO   BACK. ", Command.GO_BACK),
        ("continue", Command.CONTINUE),
        ("Next!", Command.CONTINUE),
        ("go back to the idea", None),
        ("", None),
    ])
    def test_parse_command(self, text, command) -> None:
        assert parse_command(text) is command

    def test_go_back_keeps_data(self, journey_controller) -> None:
        before = journey_controller.captured
        turn = journey_controller.go_back()
        assert turn.kind is TurnKind.WENT_BACK
        assert turn.next_step is Step.CHALLENGE
        assert journey_controller.step is Step.CHALLENGE
        assert journey_controller.captured == before
        assert CHALLENGE in turn.message

    def test_typed_go_back(self, journey_controller) -> None:
        turn = journey_controller.submit("go back")
        assert turn.kind is TurnKind.WENT_BACK
        assert journey_controller.step is Step.CHALLENGE

    def test_go_back_to_named_step(self, completion_controller) -> None:
        turn = completion_controller.go_back("IDEATION/ESSENTIAL_QUESTION")
        assert turn.next_step is Step.ESSENTIAL_QUESTION
        assert completion_controller.status is BlueprintStatus.READY

    def test_go_back_to_later_step_raises(self, journey_controller) -> None:
        with pytest.raises(ContractViolation):
            journey_controller.go_back(Step.DELIVERABLES)

    def test_go_back_to_current_step_raises(self, journey_controller) -> None:
        with pytest.raises(ContractViolation):
            journey_controller.go_back(Step.JOURNEY)

    def test_go_back_unknown_tag_raises(self, journey_controller) -> None:
        with pytest.raises(UnknownStageError):
            journey_controller.go_back("PLANNING")

    def test_go_back_at_first_step(self, controller) -> None:
        turn = controller.submit("back")
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert controller.step is Step.BIG_IDEA

    def test_go_back_from_completed_refused(self, completion_controller) -> None:
        completion_controller.submit("confirm")
        turn = completion_controller.go_back()
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert "complete" in turn.reason
        assert completion_controller.step is Step.COMPLETED

    def test_advance_after_go_back(self, journey_controller) -> None:
        journey_controller.go_back()
        turn = journey_controller.submit("continue")
        assert turn.kind is TurnKind.ADVANCED
        assert journey_controller.step is Step.JOURNEY

    def test_advance_blocked_by_gate(self, journey_controller) -> None:
        turn = journey_controller.advance()
        assert turn.kind is TurnKind.VALIDATION_INCOMPLETE
        assert turn.validation.missing == {"phases": 3}
        assert journey_controller.step is Step.JOURNEY

    def test_advance_does_not_confirm_completion(self, completion_controller) -> None:
        turn = completion_controller.advance()
        assert turn.kind is TurnKind.INPUT_REJECTED
        assert completion_controller.step is Step.COMPLETION

    def test_reentered_step_can_be_replaced(self, journey_controller) -> None:
        journey_controller.go_back(Step.BIG_IDEA)
        turn = journey_controller.submit("How ecosystems respond to pressure")
        assert turn.did_advance
        assert journey_controller.captured.ideation.big_idea == "How ecosystems respond to pressure"
        assert journey_controller.captured.ideation.challenge == CHALLENGE


# ===================================================================
# State ownership, history, hooks
# ===================================================================

class TestState:
    def test_captured_is_a_copy(self, journey_controller) -> None:
        snapshot = journey_controller.captured
        snapshot.ideation.big_idea = "tampered"
        assert journey_controller.captured.ideation.big_idea == BIG_IDEA

    def test_initial_record_is_copied(self) -> None:
        record = build_full_project()
        c = StageController(captured=record, step=Step.COMPLETION)
        record.ideation.big_idea = "tampered"
        assert c.captured.ideation.big_idea == BIG_IDEA

    def test_history(self, controller) -> None:
        controller.submit("idk")
        controller.submit(BIG_IDEA)
        kinds = [t.kind for t in controller.history]
        assert kinds == [TurnKind.INPUT_REJECTED, TurnKind.ADVANCED]
        controller.history.clear()
        assert len(controller.history) == 2

    def test_unknown_initial_step_raises(self) -> None:
        with pytest.raises(UnknownStageError):
            StageController(step="PLANNING")

    def test_resume_from_flat_record(self) -> None:
        record = serialize_captured(build_full_project())
        del record["deliverables.artifact.1"]
        c = StageController.resume(record)
        assert c.step is Step.DELIVERABLES
        turn = c.submit("Artifacts: public pitch deck")
        assert turn.did_advance
        assert c.step is Step.COMPLETION

    @pytest.mark.parametrize("extra", [{"step": Step.JOURNEY}, {"captured": None}])
    def test_resume_rejects_derived_arguments(self, extra) -> None:
        record = serialize_captured(build_full_project())
        with pytest.raises(ContractViolation, match="derives"):
            StageController.resume(record, **extra)

    def test_pacing_hook(self, journey_controller) -> None:
        hook = MagicMock(return_value="Six weeks fits three phases.")
        c = StageController(
            captured=journey_controller.captured,
            step=Step.JOURNEY,
            duration="6 weeks",
            pacing_hook=hook,
        )
        turn = c.submit(JOURNEY_TEXT)
        assert turn.message.endswith("Six weeks fits three phases.")
        duration, step, captured = hook.call_args[0]
        assert duration == "6 weeks"
        assert step is Step.DELIVERABLES
        assert len(captured.journey.phases) == 3

    def test_pacing_hook_needs_duration(self) -> None:
        hook = MagicMock(return_value="note")
        c = StageController(pacing_hook=hook)
        c.submit(BIG_IDEA)
        hook.assert_not_called()

    def test_deliverables_turn_after_journey(self, journey_controller) -> None:
        journey_controller.submit(JOURNEY_TEXT)
        turn = journey_controller.submit(DELIVERABLES_TEXT)
        assert turn.kind is TurnKind.ADVANCED
        d = journey_controller.captured.deliverables
        assert len(d.milestones) == 3
        assert len(d.artifacts) == 1
        assert len(d.rubric.criteria) == 3
