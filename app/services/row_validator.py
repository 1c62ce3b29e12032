from typing import Any, Dict, List, Mapping, Optional
import re

from app.models.fields import CanonicalField, FieldRegistry, LANE_REGISTRY
from app.models.importing import MappingValidationResult

class RowValidationError(ValueError):
    """A single spreadsheet row cannot be imported. Never aborts the batch."""

# Parsing helpers for numbers and enum labels
_NUMBER_SUFFIX = re.compile(r"\s*(km|kms|kilometers|kilometres)\.?$", re.IGNORECASE)
_ENUM_SEPARATORS = re.compile(r"[\s_-]+")

def clean_text(value: Any) -> Optional[str]:
    """
    Returns the stripped text of a cell, or None for blanks.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text == "" or text.lower() == "nan":
        return None
    return text

def parse_number(value: Any) -> Optional[float]:
    """
    Parses numeric cells such as "350", "1,200.5" or "350 km".
    Returns None if the value is not a number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    text = clean_text(value)
    if text is None:
        return None
    text = _NUMBER_SUFFIX.sub("", text).replace(",", "")
    try:
        return float(text)
    except ValueError:
        return None

def parse_enum(value: Any, allowed) -> Optional[str]:
    """
    Matches labels like "Up Country", "up-country" or "UP_COUNTRY" against
    canonical enum values. Returns None if nothing matches.
    """
    text = clean_text(value)
    if text is None:
        return None
    candidate = _ENUM_SEPARATORS.sub("_", text.upper())
    return candidate if candidate in allowed else None

def _enum_labels(allowed) -> str:
    return ", ".join(v.replace("_", " ").title() for v in allowed)

# VALIDATION LOGIC
#----------------------------------------------------------------
def validate_mapping_structure(
    mapping: Mapping[str, str],
    available_columns: List[str],
    registry: FieldRegistry = LANE_REGISTRY,
) -> MappingValidationResult:
    """
    Checks the mapping itself, before any row is read.
    """
    errors: List[str] = []

    for key in registry.required_keys():
        if not mapping.get(key):
            errors.append(f"Required field '{key}' is not mapped.")

    for key, col_name in mapping.items():
        if registry.field_by_key(key) is None:
            errors.append(f"Unknown field '{key}' in mapping.")
        elif col_name and col_name not in available_columns:
            errors.append(f"Field '{key}' is mapped to missing column '{col_name}'.")

    return MappingValidationResult(is_valid=len(errors) == 0, errors=errors)

def _convert(field: CanonicalField, raw: Any) -> Any:
    if field.type == "number":
        if clean_text(raw) is None:
            return None
        number = parse_number(raw)
        if number is None:
            raise RowValidationError(f"{field.label} must be a number (got '{clean_text(raw)}')")
        if field.positive and number <= 0:
            raise RowValidationError(f"{field.label} must be greater than 0")
        return number

    if field.type == "enum":
        if clean_text(raw) is None:
            return field.default
        parsed = parse_enum(raw, field.allowed_values or ())
        if parsed is None:
            raise RowValidationError(
                f"{field.label} must be one of {_enum_labels(field.allowed_values or ())} "
                f"(got '{clean_text(raw)}')"
            )
        return parsed

    return clean_text(raw)

def transform_row(
    raw_row: Mapping[str, Any],
    mapping: Mapping[str, str],
    fallback_values: Optional[Mapping[str, str]] = None,
    registry: FieldRegistry = LANE_REGISTRY,
) -> Dict[str, Any]:
    """
    Converts one raw spreadsheet row into a lane record keyed by canonical field.

    Mapped fields read their column; unmapped fields take the fallback value
    if one was sent. A fallback never replaces a mapped column, even when the
    cell is blank. Raises RowValidationError on the first problem found.
    """
    fallback_values = fallback_values or {}
    record: Dict[str, Any] = {}

    for field in registry.fields():
        col_name = mapping.get(field.key)
        if col_name:
            raw = raw_row.get(col_name)
        else:
            raw = fallback_values.get(field.key)

        if field.required and clean_text(raw) is None:
            raise RowValidationError(f"{field.label} is required")

        record[field.key] = _convert(field, raw)

    return record
