"""In-memory session store.

One :class:`StageController` per session id, kept in process memory.
Sessions do not survive a restart; persistence is the caller's job via
the export endpoint.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from alf_coach.config.settings import CoachSettings, load_settings
from alf_coach.engine.controller import StageController

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------

_mem_sessions: Dict[str, dict] = {}
_lock = threading.Lock()
_settings: Optional[CoachSettings] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uuid() -> str:
    return str(uuid.uuid4())


def get_settings() -> CoachSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def create_session(
    project_topic: str = "",
    duration: Optional[str] = None,
    record: Optional[Dict[str, Any]] = None,
) -> dict:
    kwargs: Dict[str, Any] = {"settings": get_settings(), "duration": duration}
    if record:
        controller = StageController.resume(record, **kwargs)
    else:
        controller = StageController(**kwargs)
    now = _now_iso()
    session = {
        "id": _uuid(),
        "project_topic": project_topic,
        "duration": duration,
        "controller": controller,
        "lock": threading.Lock(),
        "created_at": now,
        "updated_at": now,
    }
    with _lock:
        _mem_sessions[session["id"]] = session
    logger.info("Session %s created at step %s", session["id"], controller.step.value)
    return session


def get_session(session_id: str) -> Optional[dict]:
    with _lock:
        return _mem_sessions.get(session_id)


def list_sessions() -> List[dict]:
    with _lock:
        return list(_mem_sessions.values())


def touch_session(session_id: str) -> None:
    with _lock:
        s = _mem_sessions.get(session_id)
        if s is not None:
            s["updated_at"] = _now_iso()


def delete_session(session_id: str) -> bool:
    with _lock:
        if session_id in _mem_sessions:
            del _mem_sessions[session_id]
            logger.info("Session %s deleted", session_id)
            return True
        return False
