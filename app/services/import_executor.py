from typing import Mapping, Optional
import logging

from app.models.errors import IncompleteMappingError
from app.models.fields import FieldRegistry, LANE_REGISTRY
from app.models.importing import ImportRequest, ImportResult
from app.services.lane_api_client import LaneApiClient
from app.services.mapping_editor import MappingEditor

logger = logging.getLogger(__name__)

def missing_required(mapping: Mapping[str, str], registry: FieldRegistry = LANE_REGISTRY):
    return [k for k in registry.required_keys() if not mapping.get(k)]


def build_request(
    file_name: str,
    file_content: bytes,
    client_id: int,
    editor: MappingEditor,
    defaults: Optional[Mapping[str, Optional[str]]] = None,
) -> ImportRequest:
    """
    Freezes the editor's current mapping into a request.
    Defaults (e.g. the client's address as origin) only go along for
    fields the operator left unmapped.
    """
    return ImportRequest(
        file_name=file_name,
        file_content=file_content,
        client_id=client_id,
        mapping=editor.mapping,
        fallback_values=editor.fallback_values(defaults or {}),
    )


def execute(
    request: ImportRequest,
    client: LaneApiClient,
    registry: FieldRegistry = LANE_REGISTRY,
) -> ImportResult:
    """
    Runs one batch import.

    Raises IncompleteMappingError before touching the network when a required
    field is unmapped, TransportFailure when the lane API is unreachable and
    RequestRejected when it refuses the whole request. Rows that fail are
    NOT errors here: they come back inside the ImportResult.
    """
    missing = missing_required(request.mapping, registry)
    if missing:
        logger.warning("Refusing import for client %s, unmapped: %s", request.client_id, missing)
        raise IncompleteMappingError(missing)

    logger.info(
        "Importing %s for client %s (%d mapped fields, fallbacks: %s)",
        request.file_name,
        request.client_id,
        len(request.mapping),
        sorted(request.fallback_values),
    )
    result = client.import_routes(request)

    logger.info(
        "Import of %s finished: %d/%d rows imported, %d failed",
        request.file_name,
        result.successful,
        result.total,
        result.failed,
    )
    return result
