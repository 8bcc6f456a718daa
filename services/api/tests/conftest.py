"""Shared fixtures for API integration tests.

Uses FastAPI TestClient (in-memory, no network) so tests run
without a live server or external dependencies.
"""

from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(autouse=True)
def _reset_in_memory_store(monkeypatch):
    """Clear the session store and settings cache before each test."""
    from alf_coach.config.settings import CONFIG_ENV_VAR
    from services.api.app import store

    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    store._mem_sessions.clear()
    store._settings = None
    yield


@pytest.fixture()
def client():
    """FastAPI TestClient - no network, no server startup needed."""
    from fastapi.testclient import TestClient

    from services.api.app.main import app

    return TestClient(app)


@pytest.fixture()
def session_id(client):
    """Create a session and return its id."""
    resp = client.post("/v1/sessions", json={"project_topic": "Food waste"})
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.fixture()
def journey_session(client, session_id):
    """Session that has finished ideation and sits at JOURNEY."""
    for text in (
        "How communities adapt to change",
        "How might we reduce cafeteria food waste?",
        "Design a waste reduction plan for the school board",
    ):
        resp = client.post(f"/v1/sessions/{session_id}/turns", json={"text": text})
        assert resp.json()["did_advance"] is True
    return session_id
