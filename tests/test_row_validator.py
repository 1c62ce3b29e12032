import pytest

from app.services.row_validator import (
    RowValidationError,
    clean_text,
    parse_enum,
    parse_number,
    transform_row,
    validate_mapping_structure,
)
from app.models.fields import ROUTE_TYPES

MAPPING = {
    "destination": "Dest",
    "truckSize": "Truck",
    "distanceKm": "KM",
    "routeType": "Type of Route",
}

# --- Parsing helpers ---

def test_clean_text():
    assert clean_text("  Nairobi ") == "Nairobi"
    assert clean_text("") is None
    assert clean_text("   ") is None
    assert clean_text(None) is None
    assert clean_text(42) == "42"

def test_parse_number():
    assert parse_number("350") == 350.0
    assert parse_number("1,200.5") == 1200.5
    assert parse_number("480 km") == 480.0
    assert parse_number(12) == 12.0
    assert parse_number("far") is None
    assert parse_number(True) is None

def test_parse_enum_accepts_labels():
    assert parse_enum("Up Country", ROUTE_TYPES) == "UP_COUNTRY"
    assert parse_enum("cross-border", ROUTE_TYPES) == "CROSS_BORDER"
    assert parse_enum("LOCAL", ROUTE_TYPES) == "LOCAL"
    assert parse_enum("Overseas", ROUTE_TYPES) is None

# --- Structural Validation Tests ---

def test_validate_mapping_structure_success():
    result = validate_mapping_structure(MAPPING, ["Dest", "Truck", "KM", "Type of Route"])

    assert result.is_valid is True
    assert result.errors == []

def test_validate_mapping_structure_missing_required():
    result = validate_mapping_structure({"destination": "Dest"}, ["Dest"])

    assert result.is_valid is False
    assert "Required field 'truckSize' is not mapped." in result.errors

def test_validate_mapping_structure_missing_column_and_unknown_field():
    result = validate_mapping_structure(
        {"destination": "Dest", "truckSize": "Size", "weight": "Dest"},
        ["Dest"],
    )

    assert "Field 'truckSize' is mapped to missing column 'Size'." in result.errors
    assert "Unknown field 'weight' in mapping." in result.errors

# --- Row transformation ---

def test_transform_row_success():
    """
    Goal: A clean row becomes a lane record keyed by canonical field.
    """
    row = {"Dest": " Kampala ", "Truck": "30T", "KM": "1,150", "Type of Route": "Cross Border"}

    record = transform_row(row, MAPPING)

    assert record["destination"] == "Kampala"
    assert record["truckSize"] == "30T"
    assert record["distanceKm"] == 1150.0
    assert record["routeType"] == "CROSS_BORDER"
    assert record["origin"] is None
    assert record["notes"] is None

def test_transform_row_blank_required_cell():
    row = {"Dest": "", "Truck": "10T"}

    with pytest.raises(RowValidationError, match="Destination is required"):
        transform_row(row, MAPPING)

def test_transform_row_non_numeric_distance():
    row = {"Dest": "Kisumu", "Truck": "10T", "KM": "far away"}

    with pytest.raises(RowValidationError, match="must be a number"):
        transform_row(row, MAPPING)

def test_transform_row_negative_distance():
    row = {"Dest": "Kisumu", "Truck": "10T", "KM": "-5"}

    with pytest.raises(RowValidationError, match="greater than 0"):
        transform_row(row, MAPPING)

def test_transform_row_bad_route_type():
    row = {"Dest": "Kisumu", "Truck": "10T", "Type of Route": "Overseas"}

    with pytest.raises(RowValidationError, match="Route Type must be one of"):
        transform_row(row, MAPPING)

def test_transform_row_route_type_defaults():
    record = transform_row({"Dest": "Kisumu", "Truck": "10T"}, MAPPING)

    assert record["routeType"] == "UP_COUNTRY"

def test_fallback_fills_unmapped_field():
    record = transform_row({"Dest": "Kisumu", "Truck": "10T"}, MAPPING, {"origin": "Mombasa Depot"})

    assert record["origin"] == "Mombasa Depot"

def test_fallback_never_overrides_mapped_column():
    """
    Goal: Even a blank mapped origin cell stays blank; the fallback is for unmapped fields only.
    """
    mapping = dict(MAPPING, origin="From")

    record = transform_row({"Dest": "Kisumu", "Truck": "10T", "From": ""}, mapping, {"origin": "Mombasa Depot"})
    assert record["origin"] is None

    record = transform_row({"Dest": "Kisumu", "Truck": "10T", "From": "Eldoret"}, mapping, {"origin": "Mombasa Depot"})
    assert record["origin"] == "Eldoret"
