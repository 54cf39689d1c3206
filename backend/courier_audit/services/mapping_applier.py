"""
Projects raw invoice rows onto canonical field names using a confirmed mapping.
"""
import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from courier_audit.schemas.shipment import ALL_FIELDS, MANDATORY_FIELDS, CanonicalRow, RawRow

logger = logging.getLogger(__name__)

ColumnMappingDict = Dict[str, Optional[str]]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def merge_mappings(detected: Mapping[str, Optional[str]], overrides: Optional[Mapping[str, Optional[str]]]) -> ColumnMappingDict:
    """
    Overlay a reviewer's confirmed choices on top of the detected mapping.

    Override keys outside the canonical field set are ignored. An explicit
    None in the overrides unmaps the field.
    """
    merged: ColumnMappingDict = {field: detected.get(field) for field in ALL_FIELDS}
    for field, raw_header in (overrides or {}).items():
        if field not in merged:
            logger.warning("Ignoring mapping override for unknown field %s", field)
            continue
        merged[field] = raw_header or None
    return merged


def project_row(row: RawRow, mapping: Mapping[str, Optional[str]]) -> CanonicalRow:
    out: CanonicalRow = {}
    for canonical, raw_key in mapping.items():
        if raw_key and raw_key in row:
            out[canonical] = row[raw_key]
    return out


def has_mandatory_fields(row: CanonicalRow) -> bool:
    return all(not _is_missing(row.get(field)) for field in MANDATORY_FIELDS)


def apply_mapping(rows: List[RawRow], mapping: Mapping[str, Optional[str]]) -> List[CanonicalRow]:
    """
    Remap raw rows (raw header -> value) to canonical rows.

    Rows missing AWB or TotalBilledAmount are dropped; they cannot be audited.
    """
    remapped = [project_row(row, mapping) for row in rows]
    kept = [row for row in remapped if has_mandatory_fields(row)]
    dropped = len(remapped) - len(kept)
    if dropped:
        logger.info("Dropped %d of %d rows missing %s", dropped, len(remapped), MANDATORY_FIELDS)
    return kept
