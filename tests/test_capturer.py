"""Tests for the Data Capturer: list parsing, phase extraction, merge."""
from __future__ import annotations

import pytest

from alf_coach.config.models import (
    CaptureDelta,
    CapturedProject,
    Milestone,
    Phase,
    Step,
)
from alf_coach.config.settings import CoachSettings
from alf_coach.engine.capturer import (
    DataCapturer,
    DelimiterPhaseExtractor,
    PhaseExtractor,
    capture,
    classify_deliverable,
    merge,
    parse_deliverables,
    parse_list,
    parse_phases,
    split_name,
    split_resources,
)
from alf_coach.errors import ContractViolation

from samples import (
    BIG_IDEA,
    DELIVERABLES_TEXT,
    JOURNEY_TEXT,
    PHASE_EXAMPLE,
    PROSE_JOURNEY,
)


# ===================================================================
# parse_list / split_name
# ===================================================================

class TestParseList:
    def test_lines(self) -> None:
        assert parse_list("alpha\nbeta") == ["alpha", "beta"]

    def test_bullets_and_numbers_stripped(self) -> None:
        assert parse_list("- one\n* two\n3. three\n(4) four") == ["one", "two", "three", "four"]

    def test_commas_and_semicolons(self) -> None:
        assert parse_list("x, y; z") == ["x", "y", "z"]

    def test_single_item(self) -> None:
        assert parse_list("  single  ") == ["single"]

    def test_empty(self) -> None:
        assert parse_list("") == []
        assert parse_list("   ") == []


class TestSplitName:
    def test_colon(self) -> None:
        assert split_name("Research: audit") == ("Research", "audit")

    def test_dashes(self) -> None:
        assert split_name("Research – audit") == ("Research", "audit")
        assert split_name("Research — audit") == ("Research", "audit")
        assert split_name("Research - audit") == ("Research", "audit")

    def test_hyphenated_word_is_not_a_separator(self) -> None:
        assert split_name("hands-on lab") == ("hands-on lab", None)

    def test_arrow_is_not_a_separator(self) -> None:
        assert split_name("research -> build") == ("research -> build", None)

    def test_splits_once(self) -> None:
        assert split_name("Build: v1: prototype") == ("Build", "v1: prototype")


# ===================================================================
# Phase extraction
# ===================================================================

class TestParsePhases:
    def test_semicolon_example_gives_two_phases(self) -> None:
        phases = parse_phases(PHASE_EXAMPLE)
        assert len(phases) == 2
        assert phases[0].name == "Research & Analyze"
        assert phases[0].activities == ["audit", "interview"]
        assert phases[1].name == "Ideate Solutions"
        assert phases[1].activities == ["brainstorm", "sketch"]

    def test_prose_gives_no_phases(self) -> None:
        assert parse_phases(PROSE_JOURNEY) == []

    def test_multi_line(self) -> None:
        phases = parse_phases(JOURNEY_TEXT)
        assert [p.name for p in phases] == ["Research", "Ideate", "Prototype"]
        assert phases[0].activities == ["interviews", "site audit"]

    def test_multi_line_bare_name(self) -> None:
        phases = parse_phases("Research\nPrototype: build")
        assert phases[0] == Phase(name="Research", activities=[])
        assert phases[1] == Phase(name="Prototype", activities=["build"])

    def test_empty_name_is_synthesized(self) -> None:
        phases = parse_phases("Research: audit\n: brainstorm, sketch")
        assert phases[1].name == "Phase 2"
        assert phases[1].activities == ["brainstorm", "sketch"]

    def test_header_line_skipped(self) -> None:
        phases = parse_phases("Phases:\n1. Research: audit\n2. Build: test")
        assert [p.name for p in phases] == ["Research", "Build"]

    def test_single_line_leading_segments_dropped(self) -> None:
        phases = parse_phases("we start slowly, Research: audit, survey")
        assert len(phases) == 1
        assert phases[0].activities == ["audit", "survey"]

    def test_single_phase_single_line(self) -> None:
        phases = parse_phases("Research: audit")
        assert phases == [Phase(name="Research", activities=["audit"])]

    def test_empty(self) -> None:
        assert parse_phases("") == []

    def test_delimiter_extractor_is_a_phase_extractor(self) -> None:
        assert isinstance(DelimiterPhaseExtractor(), PhaseExtractor)


# ===================================================================
# Deliverables
# ===================================================================

class TestParseDeliverables:
    def test_labelled_sections(self) -> None:
        parsed = parse_deliverables(DELIVERABLES_TEXT)
        assert parsed["milestone"] == ["research brief", "prototype review", "rehearsal"]
        assert parsed["artifact"] == ["public pitch deck"]
        assert parsed["criterion"] == ["clarity", "evidence", "impact"]

    def test_label_carries_to_following_lines(self) -> None:
        parsed = parse_deliverables("Rubric:\n- clarity\n- evidence\n- impact")
        assert parsed["criterion"] == ["clarity", "evidence", "impact"]
        assert parsed["milestone"] == []

    def test_keyword_classification(self) -> None:
        parsed = parse_deliverables(
            "research brief due week 2, final presentation, rubric for clear criteria"
        )
        assert parsed["milestone"] == ["research brief due week 2"]
        assert parsed["artifact"] == ["final presentation"]
        assert parsed["criterion"] == ["rubric for clear criteria"]

    def test_single_line_label(self) -> None:
        parsed = parse_deliverables("Artifacts: podcast, poster")
        assert parsed["artifact"] == ["podcast", "poster"]

    def test_duplicates_removed_case_insensitively(self) -> None:
        parsed = parse_deliverables("Milestones: Draft, draft, Review")
        assert parsed["milestone"] == ["Draft", "Review"]

    def test_no_placeholders(self) -> None:
        parsed = parse_deliverables("Artifacts: podcast")
        assert parsed == {"milestone": [], "artifact": ["podcast"], "criterion": []}

    @pytest.mark.parametrize("item,bucket", [
        ("performance levels", "criterion"),
        ("museum exhibit", "artifact"),
        ("peer feedback session", "milestone"),
    ])
    def test_classify(self, item, bucket) -> None:
        assert classify_deliverable(item) == bucket


class TestSplitResources:
    def test_tail_is_split_off(self) -> None:
        body, resources = split_resources("Research: audit\nResources: library, museum")
        assert body.strip() == "Research: audit"
        assert resources.strip() == "library, museum"

    def test_no_resources(self) -> None:
        assert split_resources("Research: audit") == ("Research: audit", "")


# ===================================================================
# DataCapturer
# ===================================================================

class TestDataCapturer:
    def test_ideation_scalars(self) -> None:
        delta = capture(Step.BIG_IDEA, f"  {BIG_IDEA}  ")
        assert delta.big_idea == BIG_IDEA
        assert delta.phases == []

    def test_journey_with_resources(self) -> None:
        delta = capture(
            Step.JOURNEY,
            "Research: interviews, site audit\nIdeate: brainstorm\nResources: library, local museum",
        )
        assert [p.name for p in delta.phases] == ["Research", "Ideate"]
        assert delta.resources == ["library", "local museum"]

    def test_resource_cap(self) -> None:
        capturer = DataCapturer(CoachSettings(max_resources_per_turn=2))
        delta = capturer.capture(Step.JOURNEY, "Resources: a, b, c, d")
        assert delta.resources == ["a", "b"]

    def test_prose_journey_is_empty_and_logged(self, caplog) -> None:
        with caplog.at_level("WARNING", logger="alf_coach.engine.capturer"):
            delta = capture(Step.JOURNEY, PROSE_JOURNEY)
        assert delta.is_empty()
        assert "found no phases" in caplog.text

    def test_deliverables(self) -> None:
        delta = capture(Step.DELIVERABLES, DELIVERABLES_TEXT)
        assert [m.name for m in delta.milestones] == [
            "research brief", "prototype review", "rehearsal",
        ]
        assert [a.name for a in delta.artifacts] == ["public pitch deck"]
        assert delta.criteria == ["clarity", "evidence", "impact"]

    @pytest.mark.parametrize("step", [Step.COMPLETION, Step.COMPLETED])
    def test_completion_captures_nothing(self, step) -> None:
        assert capture(step, "confirm").is_empty()

    def test_custom_extractor_is_used(self) -> None:
        class Fixed(PhaseExtractor):
            name = "fixed"

            def extract(self, text):
                return [Phase(name="Only")]

        delta = DataCapturer(extractor=Fixed()).capture(Step.JOURNEY, PROSE_JOURNEY)
        assert [p.name for p in delta.phases] == ["Only"]


# ===================================================================
# merge
# ===================================================================

class TestMerge:
    def test_does_not_mutate_input(self) -> None:
        original = CapturedProject()
        merged = merge(original, CaptureDelta(big_idea=BIG_IDEA, phases=[Phase(name="A")]))
        assert original.ideation.big_idea == ""
        assert original.journey.phases == []
        assert merged.ideation.big_idea == BIG_IDEA

    def test_scalars_replaced(self) -> None:
        first = merge(CapturedProject(), CaptureDelta(big_idea="old idea text"))
        second = merge(first, CaptureDelta(big_idea="new idea text"))
        assert second.ideation.big_idea == "new idea text"

    def test_none_scalars_untouched(self) -> None:
        first = merge(CapturedProject(), CaptureDelta(challenge="Design for the community"))
        second = merge(first, CaptureDelta(big_idea="x"))
        assert second.ideation.challenge == "Design for the community"

    def test_repeated_phase_extends_activities(self) -> None:
        first = merge(CapturedProject(), CaptureDelta(
            phases=[Phase(name="Research", activities=["audit"])],
        ))
        second = merge(first, CaptureDelta(
            phases=[Phase(name="research", activities=["Audit", "interview"])],
        ))
        assert len(second.journey.phases) == 1
        assert second.journey.phases[0].activities == ["audit", "interview"]
        assert first.journey.phases[0].activities == ["audit"]

    def test_lists_deduplicated(self) -> None:
        first = merge(CapturedProject(), CaptureDelta(
            milestones=[Milestone(name="Draft")], criteria=["clarity"],
        ))
        second = merge(first, CaptureDelta(
            milestones=[Milestone(name="draft"), Milestone(name="Review")],
            criteria=["Clarity", "impact"],
        ))
        assert [m.name for m in second.deliverables.milestones] == ["Draft", "Review"]
        assert second.deliverables.rubric.criteria == ["clarity", "impact"]

    def test_list_fields_never_shrink(self) -> None:
        captured = CapturedProject()
        sizes = captured.list_sizes()
        for text in ("Research: audit", "Build: test", "research: interview", "Share: present"):
            captured = merge(captured, capture(Step.JOURNEY, text))
            new_sizes = captured.list_sizes()
            assert all(new_sizes[k] >= sizes[k] for k in sizes)
            sizes = new_sizes
        assert sizes["journey.phases"] == 3

    def test_none_record_raises(self) -> None:
        with pytest.raises(ContractViolation):
            merge(None, CaptureDelta())
