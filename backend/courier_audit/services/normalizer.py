"""
Data normalization service - coerces raw invoice cell values into canonical forms.

Handles real-world messiness:
    - Weight strings: "500g", "0.5 kg", "500 grams" -> kilograms
    - Amount strings: "₹1,234.56", "$55.00" -> float
    - Pincode strings: " 110 001 " -> "110001" (or removed if invalid)
"""
import math
import re
from typing import Any, Dict, List, Optional

from courier_audit.schemas.shipment import CanonicalField, CanonicalRow, OrderType

_GRAM_RE = re.compile(r"^(\d+\.?\d*)\s*gr?a?m?s?$")
_KG_RE = re.compile(r"^(\d+\.?\d*)\s*kgs?$")
_LEADING_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_AMOUNT_STRIP_RE = re.compile(r"[₹$€£,\s]")
_PINCODE_RE = re.compile(r"^\d{6}$")
_ZONE_RE = re.compile(r"^(?:ZONE[\s_-]*)?([ABC])$")

ORDER_TYPE_ALIASES = {
    "cod": OrderType.COD.value,
    "cash on delivery": OrderType.COD.value,
    "prepaid": OrderType.PREPAID.value,
    "ppd": OrderType.PREPAID.value,
    "pre-paid": OrderType.PREPAID.value,
}

AWB_FIELD = CanonicalField.AWB.value
ORDER_TYPE_FIELD = CanonicalField.ORDER_TYPE.value
ZONE_FIELDS = (
    CanonicalField.BILLED_ZONE.value,
    CanonicalField.ACTUAL_ZONE.value,
)

WEIGHT_FIELDS = (
    CanonicalField.BILLED_WEIGHT.value,
    CanonicalField.ACTUAL_WEIGHT.value,
)
# Dimensions share the weight parser: plain numeric with unit suffixes tolerated
DIMENSION_FIELDS = (
    CanonicalField.LENGTH.value,
    CanonicalField.WIDTH.value,
    CanonicalField.HEIGHT.value,
)
AMOUNT_FIELDS = (
    CanonicalField.TOTAL_BILLED_AMOUNT.value,
    CanonicalField.COD_AMOUNT.value,
)
PINCODE_FIELDS = (
    CanonicalField.ORIGIN_PINCODE.value,
    CanonicalField.DEST_PINCODE.value,
)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _parse_leading_float(text: str) -> float:
    """Parse the numeric prefix of a string ("12.5abc" -> 12.5); 0 when there is none."""
    match = _LEADING_FLOAT_RE.match(text.strip())
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def normalize_weight(raw: Any) -> float:
    """
    Normalize any weight representation to kilograms.

        number        -> returned as-is (assumed already in kg)
        "0.5"         -> 0.5
        "0.5 kg"      -> 0.5
        "500g"        -> 0.5
        "500 grams"   -> 0.5
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        return float(raw)

    text = str(raw).lower().strip()

    gram_match = _GRAM_RE.match(text)
    if gram_match:
        return float(gram_match.group(1)) / 1000

    kg_match = _KG_RE.match(text)
    if kg_match:
        return float(kg_match.group(1))

    return _parse_leading_float(text)


def normalize_amount(raw: Any) -> float:
    """
    Strip currency symbols, thousands separators and whitespace.

        "₹1,234.56" -> 1234.56
        "$55.00"    -> 55.0
        "55"        -> 55.0
    """
    if _is_blank(raw) or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        return float(raw)
    cleaned = _AMOUNT_STRIP_RE.sub("", str(raw)).strip()
    return _parse_leading_float(cleaned)


def normalize_pincode(raw: Any) -> Optional[str]:
    """Return a 6-digit pincode with whitespace removed, or None when invalid."""
    if _is_blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    text = re.sub(r"\s", "", str(raw))
    return text if _PINCODE_RE.match(text) else None


def normalize_zone(raw: Any) -> Any:
    """Map zone labels like "Zone a" or "ZONE-C" to a bare letter; other values are only trimmed."""
    if _is_blank(raw):
        return raw
    text = str(raw).strip().upper()
    match = _ZONE_RE.match(text)
    return match.group(1) if match else text


def normalize_order_type(raw: Any) -> Any:
    if _is_blank(raw):
        return raw
    text = str(raw).strip()
    return ORDER_TYPE_ALIASES.get(text.lower(), text)


def normalize_awb(raw: Any) -> Any:
    """Spreadsheet readers turn numeric AWBs into floats; restore the digit string."""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    if isinstance(raw, (int, str)) and not isinstance(raw, bool):
        return str(raw).strip()
    return raw


def normalize_row(row: Dict[str, Any]) -> CanonicalRow:
    """
    Apply the field normalizers to one canonical row.

    Only fields present in the row are touched; unrecognised fields pass
    through unchanged. Invalid pincodes are removed rather than blanked so
    "not provided" stays detectable by key absence.
    """
    out: CanonicalRow = dict(row)

    if AWB_FIELD in out:
        out[AWB_FIELD] = normalize_awb(out[AWB_FIELD])

    if ORDER_TYPE_FIELD in out:
        out[ORDER_TYPE_FIELD] = normalize_order_type(out[ORDER_TYPE_FIELD])

    for field in ZONE_FIELDS:
        if field in out:
            out[field] = normalize_zone(out[field])

    for field in WEIGHT_FIELDS + DIMENSION_FIELDS:
        if field in out:
            out[field] = normalize_weight(out[field])

    for field in AMOUNT_FIELDS:
        if field in out:
            out[field] = normalize_amount(out[field])

    for field in PINCODE_FIELDS:
        if field in out:
            pincode = normalize_pincode(out[field])
            if pincode:
                out[field] = pincode
            else:
                del out[field]

    return out


def normalize_rows(rows: List[Dict[str, Any]]) -> List[CanonicalRow]:
    return [normalize_row(row) for row in rows]
