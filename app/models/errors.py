from typing import List, Optional
from pydantic import BaseModel

class ErrorResponse(BaseModel):
    detail: str

class ImportPipelineError(Exception):
    """Base class for everything the import pipeline raises on purpose."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

class TransportFailure(ImportPipelineError):
    """The lane API could not be reached (connection refused, timeout, ...)."""

class RequestRejected(ImportPipelineError):
    """The lane API answered, but refused the whole request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

# Names used by callers that think in HTTP terms
NetworkError = TransportFailure
ServerError = RequestRejected

class IncompleteMappingError(ImportPipelineError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "Required fields are not mapped: " + ", ".join(self.missing)
        )

class UnknownFieldError(ImportPipelineError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown field '{key}'")

class UnknownColumnError(ImportPipelineError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' is not in the uploaded file")

class WizardStateError(ImportPipelineError):
    """The wizard is not at a step where this action is allowed."""

class SessionNotFoundError(ImportPipelineError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"No import session with id {session_id}")

class SpreadsheetReadError(ImportPipelineError):
    """The uploaded file is empty, too large or not a spreadsheet."""
