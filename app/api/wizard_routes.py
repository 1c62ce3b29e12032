from typing import Optional

from fastapi import APIRouter, File, Form, Header, HTTPException, Response, UploadFile

from app.models.errors import (
    ErrorResponse,
    ImportPipelineError,
    IncompleteMappingError,
    RequestRejected,
    SessionNotFoundError,
    SpreadsheetReadError,
    TransportFailure,
    UnknownColumnError,
    UnknownFieldError,
    WizardStateError,
)
from app.models.fields import LANE_REGISTRY
from app.models.importing import ClientOption, MappingUpdate, WizardSnapshot, WizardStep
from app.services import session_store, spreadsheet_reader
from app.services.import_wizard import ImportWizard
from app.services.lane_api_client import LaneApiClient
from app.services.result_presenter import present

# Endpoints the admin UI's "Bulk Import Lanes" dialog drives.
router = APIRouter(prefix="/import", tags=["import"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}

def _http_error(e: ImportPipelineError) -> HTTPException:
    if isinstance(e, SessionNotFoundError):
        status_code = 404
    elif isinstance(e, (IncompleteMappingError, WizardStateError)):
        status_code = 409
    elif isinstance(e, (UnknownFieldError, UnknownColumnError, SpreadsheetReadError)):
        status_code = 400
    elif isinstance(e, (TransportFailure, RequestRejected)):
        # The lane API is upstream of us
        status_code = 502
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=e.message)

def _api_client(authorization: Optional[str]) -> LaneApiClient:
    """A lane API client that forwards the caller's bearer token."""
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip() if scheme.lower() == "bearer" else None
    return LaneApiClient(token_provider=lambda: token)

def _wizard(session_id: str, authorization: Optional[str]) -> ImportWizard:
    try:
        wizard = session_store.get_session(session_id)
    except SessionNotFoundError as e:
        raise _http_error(e)
    wizard.api = _api_client(authorization)
    return wizard

def _snapshot(session_id: str, wizard: ImportWizard) -> WizardSnapshot:
    preview = wizard.preview
    return WizardSnapshot(
        session_id=session_id,
        step=wizard.step,
        client=wizard.client,
        file_name=wizard.file_name,
        columns=wizard.editor.columns,
        preview=preview.preview if preview else [],
        total_rows=preview.total_rows if preview else 0,
        mapping=wizard.mapping,
        is_complete=wizard.editor.is_complete(),
        can_import=wizard.can_import(),
        missing_required=wizard.editor.missing_required(),
        fallback=wizard.fallback_display() if wizard.step == WizardStep.MAPPING else [],
        last_error=wizard.last_error,
        result=present(wizard.result) if wizard.result else None,
    )

@router.get("/fields")
def get_fields():
    return {
        "fields": [
            {**f.model_dump(include={"key", "label", "required"}), "aliases": list(LANE_REGISTRY.aliases_for(f.key))}
            for f in LANE_REGISTRY.fields()
        ]
    }

@router.post("/sessions", response_model=WizardSnapshot, status_code=201, responses=ERROR_RESPONSES)
def create_session(
    file: UploadFile = File(...),
    client_id: int = Form(...),
    client_name: str = Form(""),
    client_address: Optional[str] = Form(None),
    authorization: Optional[str] = Header(None),
):
    try:
        content = spreadsheet_reader.read_upload(file)
    except SpreadsheetReadError as e:
        raise _http_error(e)

    session_id = session_store.create_session(_api_client(authorization))
    wizard = session_store.get_session(session_id)
    wizard.select_client(ClientOption(id=client_id, name=client_name, address=client_address or None))
    wizard.attach_file(file.filename, content)
    return _snapshot(session_id, wizard)

@router.get("/sessions/{session_id}", response_model=WizardSnapshot, responses=ERROR_RESPONSES)
def get_session(session_id: str, authorization: Optional[str] = Header(None)):
    return _snapshot(session_id, _wizard(session_id, authorization))

@router.put("/sessions/{session_id}/file", response_model=WizardSnapshot, responses=ERROR_RESPONSES)
def replace_file(
    session_id: str,
    file: UploadFile = File(...),
    authorization: Optional[str] = Header(None),
):
    wizard = _wizard(session_id, authorization)
    try:
        content = spreadsheet_reader.read_upload(file)
        wizard.attach_file(file.filename, content)
    except ImportPipelineError as e:
        raise _http_error(e)
    return _snapshot(session_id, wizard)

@router.post("/sessions/{session_id}/preview", response_model=WizardSnapshot, responses=ERROR_RESPONSES)
def preview_file(session_id: str, authorization: Optional[str] = Header(None)):
    wizard = _wizard(session_id, authorization)
    try:
        wizard.load_preview()
    except ImportPipelineError as e:
        raise _http_error(e)
    return _snapshot(session_id, wizard)

@router.put("/sessions/{session_id}/mapping", response_model=WizardSnapshot, responses=ERROR_RESPONSES)
def update_mapping(
    session_id: str,
    update: MappingUpdate,
    authorization: Optional[str] = Header(None),
):
    wizard = _wizard(session_id, authorization)
    try:
        wizard.set_mapping(update.key, update.column)
    except ImportPipelineError as e:
        raise _http_error(e)
    return _snapshot(session_id, wizard)

@router.post("/sessions/{session_id}/import", response_model=WizardSnapshot, responses=ERROR_RESPONSES)
def run_import(session_id: str, authorization: Optional[str] = Header(None)):
    wizard = _wizard(session_id, authorization)
    try:
        wizard.run_import()
    except ImportPipelineError as e:
        raise _http_error(e)
    return _snapshot(session_id, wizard)

@router.delete("/sessions/{session_id}", status_code=204, responses=ERROR_RESPONSES)
def close_session(session_id: str):
    try:
        session_store.discard_session(session_id)
    except SessionNotFoundError as e:
        raise _http_error(e)
    return Response(status_code=204)
