"""Coaching session endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from alf_coach.config.models import ConversationTurn, Step
from alf_coach.engine.coaching import summarize_captured
from alf_coach.engine.serialization import serialize_captured
from alf_coach.errors import ContractViolation, UnknownStageError
from shared.schemas.sessions import (
    BackRequest,
    SessionCreate,
    SessionExport,
    SessionResponse,
    TurnRequest,
    TurnResponse,
)

from .. import store

router = APIRouter()


def _require(session_id: str) -> dict:
    session = store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail={"code": "SESSION_NOT_FOUND"})
    return session


def _session_out(session: dict) -> SessionResponse:
    controller = session["controller"]
    return SessionResponse(
        id=session["id"],
        project_topic=session["project_topic"],
        duration=session["duration"],
        step=controller.step,
        stage=controller.stage,
        status=controller.status,
        captured=controller.captured,
        turns=len(controller.history),
        created_at=session["created_at"],
        updated_at=session["updated_at"],
    )


def _turn_out(turn: ConversationTurn) -> TurnResponse:
    return TurnResponse(
        kind=turn.kind,
        step=turn.step,
        next_step=turn.next_step,
        did_advance=turn.did_advance,
        extraction_empty=turn.extraction_empty,
        message=turn.message,
        reason=turn.reason,
        assessment=turn.assessment,
        validation=turn.validation,
    )


@router.post("/sessions", status_code=201, response_model=SessionResponse)
async def create_session(body: SessionCreate):
    """Start a session, optionally resuming from a stored record."""
    session = store.create_session(
        project_topic=body.project_topic,
        duration=body.duration,
        record=body.record,
    )
    return _session_out(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    """Get the current step and captured record."""
    return _session_out(_require(session_id))


@router.post("/sessions/{session_id}/turns", response_model=TurnResponse)
async def submit_turn(session_id: str, body: TurnRequest):
    """Submit one user message."""
    session = _require(session_id)
    with session["lock"]:
        turn = session["controller"].submit(body.text)
    store.touch_session(session_id)
    return _turn_out(turn)


@router.post("/sessions/{session_id}/back", response_model=TurnResponse)
async def go_back(session_id: str, body: BackRequest = BackRequest()):
    """Re-enter the previous step, or a named earlier step."""
    session = _require(session_id)
    try:
        with session["lock"]:
            turn = session["controller"].go_back(body.target)
    except UnknownStageError as e:
        raise HTTPException(
            status_code=422, detail={"code": "UNKNOWN_STEP", "message": str(e)}
        )
    except ContractViolation as e:
        raise HTTPException(
            status_code=409, detail={"code": "INVALID_TARGET", "message": str(e)}
        )
    store.touch_session(session_id)
    return _turn_out(turn)


@router.post("/sessions/{session_id}/advance", response_model=TurnResponse)
async def advance(session_id: str):
    """Re-validate the current step and move on if its gate passes."""
    session = _require(session_id)
    with session["lock"]:
        turn = session["controller"].advance()
    store.touch_session(session_id)
    return _turn_out(turn)


@router.get("/sessions/{session_id}/export", response_model=SessionExport)
async def export_session(session_id: str):
    """Flat record, summary and turn history."""
    session = _require(session_id)
    controller = session["controller"]
    captured = controller.captured
    return SessionExport(
        id=session["id"],
        status=controller.status,
        complete=controller.step is Step.COMPLETED,
        record=serialize_captured(captured),
        summary=summarize_captured(
            captured, step=controller.step, project_topic=session["project_topic"],
        ),
        history=[_turn_out(t) for t in controller.history],
    )


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Drop a session."""
    _require(session_id)
    store.delete_session(session_id)
    return {"status": "deleted", "session_id": session_id}
