"""
HTTP client for the remote lane API.

Only the two bulk-import calls live here:
    POST /routes/preview  -> columns, sample rows and row count of a spreadsheet
    POST /routes/import   -> batch import result with per-row errors

The bearer token comes from whoever handles authentication; this client
only attaches it to each request.
"""

import json
import logging
from typing import Callable, Dict, Optional

import requests
from pydantic import ValidationError

from app.core.config import settings
from app.models.errors import RequestRejected, TransportFailure
from app.models.fields import fallback_form_field
from app.models.importing import ImportRequest, ImportResult, PreviewData

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]

def _error_message(response: requests.Response, fallback: str) -> str:
    """
    Pulls the human-readable reason out of an error response.
    The lane API answers {"error": "..."}; FastAPI style {"detail": "..."} is accepted too.
    """
    try:
        body = response.json()
    except ValueError:
        return fallback

    if isinstance(body, dict):
        for key in ("error", "detail", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class LaneApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.LANE_API_URL).rstrip("/")
        self.token_provider = token_provider
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _post(self, path: str, files: dict, data: Optional[dict], failure: str) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(
                url,
                headers=self._headers(),
                files=files,
                data=data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Lane API call %s failed: %s", path, e)
            raise TransportFailure(f"Could not reach the lane API: {e}") from e

        if not response.ok:
            message = _error_message(response, failure)
            logger.warning("Lane API rejected %s (%s): %s", path, response.status_code, message)
            raise RequestRejected(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise RequestRejected(f"{failure}: response was not JSON", status_code=response.status_code) from e

    def preview(self, file_name: str, content: bytes) -> PreviewData:
        body = self._post(
            "/routes/preview",
            files={"file": (file_name, content)},
            data=None,
            failure="Preview failed",
        )
        try:
            preview = PreviewData.model_validate(body)
        except ValidationError as e:
            raise RequestRejected(f"Preview failed: unexpected response ({e.error_count()} problems)") from e

        logger.info(
            "Previewed %s: %d columns, %d rows",
            file_name,
            len(preview.columns),
            preview.total_rows,
        )
        return preview

    def import_routes(self, request: ImportRequest) -> ImportResult:
        data = {
            "clientId": str(request.client_id),
            "mapping": json.dumps(request.mapping),
        }
        for key, value in request.fallback_values.items():
            data[fallback_form_field(key)] = value

        body = self._post(
            "/routes/import",
            files={"file": (request.file_name, request.file_content)},
            data=data,
            failure="Import failed",
        )
        try:
            result = ImportResult.model_validate(body)
        except ValidationError as e:
            raise RequestRejected(f"Import failed: unexpected response ({e.error_count()} problems)") from e

        # The rows are stored by now, so odd counts are reported, not refused
        for problem in result.count_problems():
            logger.warning("Import of %s returned inconsistent counts: %s", request.file_name, problem)
        return result
