from typing import Dict, List, Mapping, Optional
import logging

from app.models.errors import UnknownColumnError, UnknownFieldError
from app.models.fields import FieldRegistry, LANE_REGISTRY
from app.services.auto_mapper import auto_map, dedupe_columns

logger = logging.getLogger(__name__)

# The value the mapping form sends for "not mapped"
UNMAPPED = "none"

class MappingEditor:
    """
    Owns the operator's column mapping for one wizard session.

    The mapping starts as the auto-mapper's proposal and is then edited field
    by field. Completeness is derived from the current mapping on every call.
    """

    def __init__(self, registry: FieldRegistry = LANE_REGISTRY, columns: Optional[List[str]] = None):
        self.registry = registry
        self.columns: List[str] = []
        self._mapping: Dict[str, str] = {}
        if columns is not None:
            self.reset(columns)

    @property
    def mapping(self) -> Dict[str, str]:
        return dict(self._mapping)

    def reset(self, columns: List[str]) -> Dict[str, str]:
        """Starts over for a freshly previewed file, seeded by the auto-mapper."""
        self.columns = dedupe_columns(columns)
        self._mapping = auto_map(self.columns, self.registry)
        return self.mapping

    def clear(self):
        self.columns = []
        self._mapping = {}

    def set_mapping(self, key: str, column: Optional[str]):
        if self.registry.field_by_key(key) is None:
            raise UnknownFieldError(key)

        if column is None or column == "" or column == UNMAPPED:
            self._mapping.pop(key, None)
            return

        if column not in self.columns:
            raise UnknownColumnError(column)
        self._mapping[key] = column

    def is_mapped(self, key: str) -> bool:
        return bool(self._mapping.get(key))

    def missing_required(self) -> List[str]:
        return [k for k in self.registry.required_keys() if not self.is_mapped(k)]

    def is_complete(self) -> bool:
        return not self.missing_required()

    def fallback_values(self, defaults: Mapping[str, Optional[str]]) -> Dict[str, str]:
        """
        Defaults that should travel with the import request.
        A default is only sent for a field the operator left unmapped;
        once the field is mapped its column always wins.
        """
        fallbacks = {}
        for key, value in defaults.items():
            if not value or self.is_mapped(key):
                continue
            if self.registry.field_by_key(key) is None:
                logger.warning("Ignoring fallback for unknown field %r", key)
                continue
            fallbacks[key] = value
        return fallbacks
