from typing import Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal["string", "number", "enum"]

class CanonicalField(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    required: bool = False
    type: FieldType = "string"

    # --- row validation constraints ---
    # Enum-specific (canonical values, e.g. "UP_COUNTRY")
    allowed_values: Optional[Tuple[str, ...]] = None
    default: Optional[str] = None

    # Number-specific
    positive: bool = False

class FieldRegistry(BaseModel):
    """
    The fixed, ordered set of fields an import can target, plus the
    lower-cased alias fragments used to recognise them in spreadsheet headers.
    Order matters: it drives the mapping form and the auto-mapper's loop.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    entries: Tuple[CanonicalField, ...]
    aliases: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    def fields(self) -> List[CanonicalField]:
        return list(self.entries)

    def aliases_for(self, key: str) -> Tuple[str, ...]:
        return self.aliases.get(key, ())

    def field_by_key(self, key: str) -> Optional[CanonicalField]:
        return next((f for f in self.entries if f.key == key), None)

    def required_keys(self) -> List[str]:
        return [f.key for f in self.entries if f.required]

ROUTE_TYPES = ("UP_COUNTRY", "LOCAL", "CROSS_BORDER")

LANE_FIELDS = (
    CanonicalField(key="destination", label="Destination", required=True),
    CanonicalField(key="truckSize", label="Truck Size", required=True),
    CanonicalField(key="laneName", label="Lane Name"),
    CanonicalField(key="distanceKm", label="Distance (km)", type="number", positive=True),
    CanonicalField(key="laneCode", label="Lane Code"),
    CanonicalField(key="sfrCode", label="SFR Code"),
    CanonicalField(key="origin", label="Origin"),
    CanonicalField(key="category", label="Category"),
    CanonicalField(
        key="routeType",
        label="Route Type",
        type="enum",
        allowed_values=ROUTE_TYPES,
        default="UP_COUNTRY",
    ),
    CanonicalField(key="notes", label="Notes"),
)

# Substrings, not regexes. Keep them lower-case.
LANE_ALIASES = {
    "laneName": ("lane name", "lane", "route name", "name", "description", "lane_name"),
    "destination": ("destination", "dest", "to", "delivery location"),
    "truckSize": (
        "truck size",
        "truck",
        "size",
        "tonnage",
        "capacity",
        "trucksize",
        "truck_size",
        "vehicle size",
    ),
    "distanceKm": ("distance", "km", "dist", "distancekm", "distance_km", "kms", "kilometers"),
    "laneCode": ("lane code", "code", "lanecode", "lane_code", "route code"),
    "sfrCode": ("sfr code", "sfr", "sfrcode", "sfr_code"),
    "origin": ("origin", "from", "source", "pickup", "pick up"),
    "category": ("category", "cat", "type", "freight type", "cargo type"),
    "routeType": ("route type", "routetype", "route_type", "type of route"),
    "notes": ("notes", "note", "remarks", "instructions", "comments"),
}

LANE_REGISTRY = FieldRegistry(name="LaneImport", entries=LANE_FIELDS, aliases=LANE_ALIASES)

def fallback_form_field(key: str) -> str:
    """Multipart field carrying the fallback for `key`, e.g. origin -> defaultOrigin."""
    return "default" + key[:1].upper() + key[1:]
