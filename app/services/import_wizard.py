"""
Step machine behind the "Bulk Import Lanes" dialog.

    upload -> mapping -> importing -> done

A file is previewed from `upload`, the operator edits the proposed mapping in
`mapping`, and `run_import` moves through `importing` to `done`. A request the
lane API refuses outright sends the wizard back to `mapping` with the file
and mapping untouched, so nothing has to be uploaded again.
"""

import logging
import threading
from typing import Dict, List, Optional

from app.models.errors import (
    ImportPipelineError,
    IncompleteMappingError,
    WizardStateError,
)
from app.models.fields import FieldRegistry, LANE_REGISTRY
from app.models.importing import (
    ClientOption,
    FallbackDisplay,
    ImportResult,
    PreviewData,
    WizardStep,
)
from app.services import import_executor
from app.services.lane_api_client import LaneApiClient
from app.services.mapping_editor import MappingEditor

logger = logging.getLogger(__name__)


class ImportWizard:
    def __init__(self, api: LaneApiClient, registry: FieldRegistry = LANE_REGISTRY):
        self.api = api
        self.registry = registry
        self.editor = MappingEditor(registry)
        self._import_lock = threading.Lock()
        self.reset()

    # --- upload step ---

    def select_client(self, client: ClientOption):
        if self.step not in (WizardStep.UPLOAD, WizardStep.MAPPING):
            raise WizardStateError(f"Cannot change client while {self.step.value}")
        self.client = client

    def attach_file(self, file_name: str, content: bytes):
        """A new file throws away any preview and mapping made for the old one."""
        if self.step not in (WizardStep.UPLOAD, WizardStep.MAPPING):
            raise WizardStateError(f"Cannot change file while {self.step.value}")
        self.file_name = file_name
        self.file_content = content
        self.preview = None
        self.editor.clear()
        self.last_error = None
        self.step = WizardStep.UPLOAD

    def load_preview(self) -> PreviewData:
        if self.step != WizardStep.UPLOAD:
            raise WizardStateError(f"Cannot preview while {self.step.value}")
        if self.client is None or self.file_content is None:
            raise WizardStateError("Select a client and upload a file first")

        try:
            preview = self.api.preview(self.file_name, self.file_content)
        except ImportPipelineError as e:
            self.last_error = e.message
            raise

        self.preview = preview
        self.editor.reset(preview.columns)
        self.last_error = None
        self.step = WizardStep.MAPPING
        logger.info(
            "Preview ready for %s: %d/%d fields auto-mapped",
            self.file_name,
            len(self.editor.mapping),
            len(self.registry.entries),
        )
        return preview

    # --- mapping step ---

    @property
    def mapping(self) -> Dict[str, str]:
        return self.editor.mapping

    def set_mapping(self, key: str, column: Optional[str]):
        if self.step != WizardStep.MAPPING:
            raise WizardStateError(f"Cannot edit the mapping while {self.step.value}")
        self.editor.set_mapping(key, column)

    def defaults(self) -> Dict[str, Optional[str]]:
        """Client level defaults offered for unmapped fields."""
        if self.client is None:
            return {}
        return {"origin": self.client.address}

    def fallback_display(self) -> List[FallbackDisplay]:
        return [
            FallbackDisplay(key=k, value=v)
            for k, v in self.editor.fallback_values(self.defaults()).items()
        ]

    def can_import(self) -> bool:
        return self.step == WizardStep.MAPPING and self.editor.is_complete()

    def run_import(self) -> ImportResult:
        # Checked and flipped together so a double submit cannot start two imports
        with self._import_lock:
            if self.step != WizardStep.MAPPING:
                raise WizardStateError(f"Cannot import while {self.step.value}")
            if not self.editor.is_complete():
                raise IncompleteMappingError(self.editor.missing_required())

            request = import_executor.build_request(
                file_name=self.file_name,
                file_content=self.file_content,
                client_id=self.client.id,
                editor=self.editor,
                defaults=self.defaults(),
            )
            self.step = WizardStep.IMPORTING

        try:
            result = import_executor.execute(request, self.api, self.registry)
        except ImportPipelineError as e:
            self.last_error = e.message
            self.step = WizardStep.MAPPING
            raise

        self.result = result
        self.last_error = None
        self.step = WizardStep.DONE
        return result

    def reset(self):
        """Closing the dialog forgets everything, including the selected client."""
        self.step = WizardStep.UPLOAD
        self.client: Optional[ClientOption] = None
        self.file_name: Optional[str] = None
        self.file_content: Optional[bytes] = None
        self.preview: Optional[PreviewData] = None
        self.result: Optional[ImportResult] = None
        self.last_error: Optional[str] = None
        self.editor.clear()
