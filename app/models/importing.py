from enum import Enum
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

# A preview cell as it comes back from the spreadsheet reader
CellValue = Union[str, int, float, bool, None]

class WizardStep(str, Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    IMPORTING = "importing"
    DONE = "done"

class ClientOption(BaseModel):
    id: int
    name: str = ""
    address: Optional[str] = None

class PreviewData(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    columns: List[str]
    preview: List[Dict[str, CellValue]] = Field(default_factory=list)
    total_rows: int = Field(0, alias="totalRows", ge=0)

class ImportRequest(BaseModel):
    file_name: str
    file_content: bytes
    client_id: int
    mapping: Dict[str, str]  # canonical key -> source column
    fallback_values: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _fallbacks_only_for_unmapped(self):
        overlap = sorted(k for k in self.fallback_values if self.mapping.get(k))
        if overlap:
            raise ValueError(f"Fallback values given for mapped fields: {', '.join(overlap)}")
        return self

class RowError(BaseModel):
    row: int
    error: str

class ImportResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(ge=0)
    successful: int = Field(ge=0)
    failed: int = Field(ge=0)
    errors: List[RowError] = Field(default_factory=list)
    has_more_errors: bool = Field(False, alias="hasMoreErrors")

    def count_problems(self) -> List[str]:
        """
        Ways the counts contradict each other. The batch importer never
        produces these; a result read back from the lane API is reported as-is
        because its rows are already stored.
        """
        problems = []
        if self.successful + self.failed != self.total:
            problems.append(
                f"successful ({self.successful}) + failed ({self.failed}) "
                f"does not equal total ({self.total})"
            )
        if len(self.errors) > self.failed:
            problems.append("More row errors than failed rows")
        return problems

class ResultSummary(BaseModel):
    total: int
    successful: int
    failed: int
    error_heading: Optional[str] = None
    error_lines: List[str] = Field(default_factory=list)
    truncated: bool = False

class FallbackDisplay(BaseModel):
    key: str
    value: str

class MappingUpdate(BaseModel):
    key: str
    column: Optional[str] = None  # None or "none" un-maps the field

class WizardSnapshot(BaseModel):
    session_id: str
    step: WizardStep
    client: Optional[ClientOption] = None
    file_name: Optional[str] = None
    columns: List[str] = Field(default_factory=list)
    preview: List[Dict[str, CellValue]] = Field(default_factory=list)
    total_rows: int = 0
    mapping: Dict[str, str] = Field(default_factory=dict)
    is_complete: bool = False
    can_import: bool = False
    missing_required: List[str] = Field(default_factory=list)
    fallback: List[FallbackDisplay] = Field(default_factory=list)
    last_error: Optional[str] = None
    result: Optional[ResultSummary] = None

class MappingValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
