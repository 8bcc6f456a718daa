"""Shared fixtures for the ALF Coach test suite.

Provides settings, controllers parked at interesting steps, and sample
captured records.  Raw sample answers live in ``samples.py``.
"""

import json

import pytest

from alf_coach.config.models import CapturedProject, Ideation
from alf_coach.config.settings import CONFIG_ENV_VAR, CoachSettings
from alf_coach.engine.controller import StageController

from samples import (
    BIG_IDEA,
    CHALLENGE,
    DELIVERABLES_TEXT,
    ESSENTIAL_QUESTION,
    JOURNEY_TEXT,
    build_full_project,
)


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    """Keep a developer's ALF_COACH_CONFIG out of the tests."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return CoachSettings()


# ---------------------------------------------------------------------------
# Captured records
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_project():
    return CapturedProject()


@pytest.fixture
def full_project():
    return build_full_project()


@pytest.fixture
def ideation_only_project():
    return CapturedProject(
        ideation=Ideation(
            big_idea=BIG_IDEA,
            essential_question=ESSENTIAL_QUESTION,
            challenge=CHALLENGE,
        )
    )


@pytest.fixture
def record_file(tmp_path):
    """Write a record dict to a JSON file and return its path."""

    def _write(record, name="record.json"):
        path = tmp_path / name
        path.write_text(json.dumps(record), encoding="utf-8")
        return str(path)

    return _write


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------

@pytest.fixture
def controller():
    return StageController()


@pytest.fixture
def journey_controller():
    """Controller that has completed ideation and sits at JOURNEY."""
    c = StageController()
    for text in (BIG_IDEA, ESSENTIAL_QUESTION, CHALLENGE):
        assert c.submit(text).did_advance
    return c


@pytest.fixture
def completion_controller(journey_controller):
    """Controller that has captured everything and sits at COMPLETION."""
    assert journey_controller.submit(JOURNEY_TEXT).did_advance
    assert journey_controller.submit(DELIVERABLES_TEXT).did_advance
    return journey_controller
