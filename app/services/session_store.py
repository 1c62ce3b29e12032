import threading
import uuid
from typing import Dict

from app.models.errors import SessionNotFoundError
from app.services.import_wizard import ImportWizard
from app.services.lane_api_client import LaneApiClient

# One wizard per open import dialog. Nothing here outlives the process.
_sessions: Dict[str, ImportWizard] = {}
_lock = threading.Lock()

def create_session(api: LaneApiClient) -> str:
    session_id = str(uuid.uuid4())
    with _lock:
        _sessions[session_id] = ImportWizard(api)
    return session_id

def get_session(session_id: str) -> ImportWizard:
    with _lock:
        wizard = _sessions.get(session_id)
    if wizard is None:
        raise SessionNotFoundError(session_id)
    return wizard

def discard_session(session_id: str):
    with _lock:
        wizard = _sessions.pop(session_id, None)
    if wizard is None:
        raise SessionNotFoundError(session_id)
    wizard.reset()

def clear_sessions():
    with _lock:
        _sessions.clear()
