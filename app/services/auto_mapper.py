from typing import Dict, Iterable, List, Optional
import logging
import re

from app.models.fields import FieldRegistry, LANE_REGISTRY

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s_-]+")

def normalize_header(header: str) -> str:
    """
    Standardizes a spreadsheet header for alias comparison.
    Example: "  Truck__Size - KG " -> "truck size kg"
    """
    return _SEPARATORS.sub(" ", header.lower()).strip()


def header_matches(header: str, aliases: Iterable[str]) -> bool:
    normalized = normalize_header(header)
    return any(normalized == alias or alias in normalized for alias in aliases)


def dedupe_columns(columns: Iterable[str]) -> List[str]:
    """
    Keeps the first occurrence of each header, in file order.
    Later copies can never be picked by the mapper and the import endpoint
    reads cells by header name, so they are dropped rather than renamed.
    """
    seen = set()
    unique = []
    for col in columns:
        if col in seen:
            logger.warning("Duplicate column header %r ignored", col)
            continue
        seen.add(col)
        unique.append(col)
    return unique


def find_column(columns: List[str], aliases: Iterable[str]) -> Optional[str]:
    aliases = tuple(aliases)
    if not aliases:
        return None
    for col in columns or []:
        # Headers of a sheet without a header row can come back as numbers
        if not isinstance(col, str) or not col.strip():
            continue
        if header_matches(col, aliases):
            return col
    return None


def auto_map(columns: List[str], registry: FieldRegistry = LANE_REGISTRY) -> Dict[str, str]:
    """
    Proposes a canonical field -> column mapping from header text alone.

    For every field (registry order) the FIRST column in file order whose
    normalized header equals or contains one of the field's aliases wins.
    There is no scoring. Unmatched fields are left out of the result.
    The same column may be proposed for more than one field.
    """
    proposal: Dict[str, str] = {}

    for field in registry.fields():
        match = find_column(columns, registry.aliases_for(field.key))
        if match is not None:
            proposal[field.key] = match

    logger.debug("Auto-mapped %d of %d fields", len(proposal), len(registry.entries))
    return proposal
