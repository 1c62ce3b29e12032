import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from app.core.config import settings
from app.models.errors import RequestRejected
from app.models.fields import FieldRegistry, LANE_REGISTRY
from app.models.importing import ImportResult, RowError
from app.services import spreadsheet_reader
from app.services.row_validator import (
    RowValidationError,
    transform_row,
    validate_mapping_structure,
)

logger = logging.getLogger(__name__)

# Receives each accepted lane record. Raising rejects that row only.
LaneSink = Callable[[Dict[str, Any]], None]

class MemoryLaneSink:
    """Keeps accepted lanes in a list. Stands in for the real lane store."""

    def __init__(self):
        self.lanes: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def __call__(self, record: Dict[str, Any]):
        with self._lock:
            self.lanes.append(record)

def import_rows(
    rows,
    client_id: int,
    mapping: Mapping[str, str],
    sink: LaneSink,
    fallback_values: Optional[Mapping[str, str]] = None,
    import_source: Optional[str] = None,
    max_errors: Optional[int] = None,
    registry: FieldRegistry = LANE_REGISTRY,
) -> ImportResult:
    """
    Imports already-parsed rows one at a time.

    `rows` is a sequence of (row_number, raw_row) pairs. A row that fails
    validation, or that the sink refuses, is counted and reported but never
    stops the rows after it. Only the first `max_errors` failures are listed;
    `hasMoreErrors` says the list was cut short.
    """
    max_errors = settings.MAX_ROW_ERRORS if max_errors is None else max_errors

    # Fallbacks for mapped fields are ignored, the column always wins
    fallbacks = {
        k: v for k, v in (fallback_values or {}).items() if v and not mapping.get(k)
    }

    total = 0
    successful = 0
    failed = 0
    errors: List[RowError] = []

    for row_number, raw_row in rows:
        total += 1
        try:
            record = transform_row(raw_row, mapping, fallbacks, registry)
            record["clientId"] = client_id
            record["importSource"] = import_source
            sink(record)
        except RowValidationError as e:
            message = str(e)
        except Exception as e:
            # The store refused the row, e.g. a duplicate lane code
            logger.warning("Row %s rejected by lane store: %s", row_number, e)
            message = f"Could not save row: {e}"
        else:
            successful += 1
            continue

        failed += 1
        if len(errors) < max_errors:
            errors.append(RowError(row=row_number, error=message))

    return ImportResult(
        total=total,
        successful=successful,
        failed=failed,
        errors=errors,
        has_more_errors=failed > len(errors),
    )

def import_file(
    file_name: str,
    content: bytes,
    client_id: int,
    mapping: Mapping[str, str],
    sink: LaneSink,
    fallback_values: Optional[Mapping[str, str]] = None,
    max_errors: Optional[int] = None,
    registry: FieldRegistry = LANE_REGISTRY,
) -> ImportResult:
    """
    Main entry point of the lane import endpoint.

    Raises SpreadsheetReadError for unreadable files and RequestRejected when
    the mapping itself is unusable; both reject the whole request.
    """
    columns, rows = spreadsheet_reader.read_rows(file_name, content)

    structural = validate_mapping_structure(mapping, columns, registry)
    if not structural.is_valid:
        raise RequestRejected("; ".join(structural.errors), status_code=400)

    result = import_rows(
        rows,
        client_id=client_id,
        mapping=mapping,
        sink=sink,
        fallback_values=fallback_values,
        import_source=file_name,
        max_errors=max_errors,
        registry=registry,
    )
    logger.info(
        "Imported %s for client %s: %d ok, %d failed of %d",
        file_name,
        client_id,
        result.successful,
        result.failed,
        result.total,
    )
    return result
