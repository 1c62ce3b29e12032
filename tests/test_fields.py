import pytest
from pydantic import ValidationError

from app.models.fields import (
    CanonicalField,
    FieldRegistry,
    LANE_REGISTRY,
    fallback_form_field,
)

# --- Test Field Initialization ---

def test_canonical_field_initialization():
    """
    Goal: Verify that a single CanonicalField is created with the properties we give it
    and falls back to 'optional string' otherwise.
    """
    # 1. Action: Create a new field
    field = CanonicalField(key="notes", label="Notes")

    # 2. Check: Defaults
    assert field.key == "notes"
    assert field.required is False
    assert field.type == "string"

def test_canonical_field_is_immutable():
    """
    Goal: The registry is loaded once; nobody may edit a field afterwards.
    """
    field = CanonicalField(key="destination", label="Destination", required=True)

    with pytest.raises(ValidationError):
        field.required = False

# --- Test Registry Helper Methods ---

def test_registry_helper_methods():
    """
    Goal: Verify the lookup helpers used by the auto-mapper and the mapping editor.
    """
    # 1. Setup: One required and one optional field, aliases only for one of them
    registry = FieldRegistry(
        name="Test",
        entries=(
            CanonicalField(key="dest", label="Dest", required=True),
            CanonicalField(key="memo", label="Memo"),
        ),
        aliases={"dest": ("destination", "to")},
    )

    # 2. Test: fields() keeps declaration order
    assert [f.key for f in registry.fields()] == ["dest", "memo"]

    # 3. Test: required_keys() returns ONLY required fields
    assert registry.required_keys() == ["dest"]

    # 4. Test: aliases_for() returns the aliases, or nothing for an unknown key
    assert registry.aliases_for("dest") == ("destination", "to")
    assert registry.aliases_for("memo") == ()
    assert registry.aliases_for("does_not_exist") == ()

    # 5. Test: field_by_key()
    assert registry.field_by_key("memo").label == "Memo"
    assert registry.field_by_key("missing") is None

# --- Test the lane registry itself ---

def test_lane_registry_order_and_required_fields():
    """
    Goal: Destination and truck size are the only required lane fields,
    and they come first in the mapping form.
    """
    keys = [f.key for f in LANE_REGISTRY.fields()]

    assert keys[:2] == ["destination", "truckSize"]
    assert LANE_REGISTRY.required_keys() == ["destination", "truckSize"]
    assert len(keys) == 10

def test_lane_aliases_are_lower_case():
    """
    Goal: Headers are lower-cased before comparison, so an upper-case alias could never match.
    """
    for key, aliases in LANE_REGISTRY.aliases.items():
        assert LANE_REGISTRY.field_by_key(key) is not None
        for alias in aliases:
            assert alias == alias.lower()

def test_fallback_form_field():
    assert fallback_form_field("origin") == "defaultOrigin"
    assert fallback_form_field("routeType") == "defaultRouteType"
