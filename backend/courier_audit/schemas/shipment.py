"""
Shipment row schemas - raw invoice rows and the canonical field set.
"""
import enum
from typing import Any, Dict, List


class CanonicalField(str, enum.Enum):
    AWB = "AWB"
    ORDER_TYPE = "OrderType"
    BILLED_WEIGHT = "BilledWeight"
    ACTUAL_WEIGHT = "ActualWeight"
    BILLED_ZONE = "BilledZone"
    ACTUAL_ZONE = "ActualZone"
    TOTAL_BILLED_AMOUNT = "TotalBilledAmount"
    LENGTH = "Length"
    WIDTH = "Width"
    HEIGHT = "Height"
    ORIGIN_PINCODE = "OriginPincode"
    DEST_PINCODE = "DestPincode"
    COD_AMOUNT = "CODAmount"
    SHIPMENT_DATE = "ShipmentDate"


class OrderType(str, enum.Enum):
    PREPAID = "Prepaid"
    COD = "COD"


# Priority order for column matching: required fields claim headers first
REQUIRED_FIELDS: List[str] = [
    CanonicalField.AWB.value,
    CanonicalField.ORDER_TYPE.value,
    CanonicalField.BILLED_WEIGHT.value,
    CanonicalField.ACTUAL_WEIGHT.value,
    CanonicalField.BILLED_ZONE.value,
    CanonicalField.ACTUAL_ZONE.value,
    CanonicalField.TOTAL_BILLED_AMOUNT.value,
]

OPTIONAL_FIELDS: List[str] = [
    CanonicalField.LENGTH.value,
    CanonicalField.WIDTH.value,
    CanonicalField.HEIGHT.value,
    CanonicalField.ORIGIN_PINCODE.value,
    CanonicalField.DEST_PINCODE.value,
    CanonicalField.COD_AMOUNT.value,
    CanonicalField.SHIPMENT_DATE.value,
]

ALL_FIELDS: List[str] = REQUIRED_FIELDS + OPTIONAL_FIELDS

# Fields without which a row cannot be audited
MANDATORY_FIELDS: List[str] = [
    CanonicalField.AWB.value,
    CanonicalField.TOTAL_BILLED_AMOUNT.value,
]

ZONES = ("A", "B", "C")

# Raw header string -> untyped cell value, one per uploaded file row
RawRow = Dict[str, Any]
# Canonical field name -> normalized value
CanonicalRow = Dict[str, Any]
