import json
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.models.errors import RequestRejected, SpreadsheetReadError
from app.models.fields import LANE_REGISTRY, fallback_form_field
from app.models.importing import ImportResult, PreviewData
from app.services import batch_importer, spreadsheet_reader
from app.services.batch_importer import LaneSink, MemoryLaneSink

logger = logging.getLogger(__name__)

# Lane API side of the bulk import: the contract the wizard talks to.
router = APIRouter(prefix="/routes", tags=["routes"])

lane_sink = MemoryLaneSink()

def get_lane_sink() -> LaneSink:
    return lane_sink

def require_bearer(authorization: Optional[str] = Header(None)) -> str:
    # Token checking belongs to the auth layer; only its presence is enforced here.
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()

def _reject(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

@router.post("/preview", response_model=PreviewData)
async def preview_routes(
    file: UploadFile = File(...),
    _token: str = Depends(require_bearer),
):
    try:
        content = spreadsheet_reader.read_upload(file)
        preview = await run_in_threadpool(
            spreadsheet_reader.build_preview, file.filename, content
        )
    except SpreadsheetReadError as e:
        return _reject(e.message)

    logger.info("Preview of %s: %d rows", file.filename, preview.total_rows)
    return preview

@router.post("/import", response_model=ImportResult)
async def import_routes(
    request: Request,
    file: UploadFile = File(...),
    clientId: int = Form(...),
    mapping: str = Form(...),
    _token: str = Depends(require_bearer),
    sink: LaneSink = Depends(get_lane_sink),
):
    try:
        parsed_mapping = json.loads(mapping)
    except ValueError:
        return _reject("Invalid mapping payload")
    if not isinstance(parsed_mapping, dict) or not all(
        isinstance(v, str) for v in parsed_mapping.values()
    ):
        return _reject("Mapping must be an object of field -> column names")

    # Fallbacks arrive as defaultOrigin, defaultCategory, ...
    form = await request.form()
    fallback_values: Dict[str, str] = {}
    for field in LANE_REGISTRY.fields():
        value = form.get(fallback_form_field(field.key))
        if isinstance(value, str) and value.strip():
            fallback_values[field.key] = value.strip()

    try:
        content = spreadsheet_reader.read_upload(file)
        result = await run_in_threadpool(
            batch_importer.import_file,
            file.filename,
            content,
            clientId,
            parsed_mapping,
            sink,
            fallback_values,
        )
    except SpreadsheetReadError as e:
        return _reject(e.message)
    except RequestRejected as e:
        return _reject(e.message, e.status_code or 400)

    return result
