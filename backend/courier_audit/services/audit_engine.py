"""
Audit engine - evaluates canonical shipment rows against a rate card and
flags overbilled shipments.

Key business rules:
1. Base rate comes from the ACTUAL zone (the contract applies to the true zone)
2. Expected freight uses BILLED weight (the carrier bills by billed weight)
3. COD shipments add cod_fee_percentage on top of freight
4. Differences of 1 rupee or less are billing noise and never flagged
"""
import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

from courier_audit.schemas.analysis import ISSUE_SEPARATOR, AnalysisResult, Discrepancy
from courier_audit.schemas.contract import ContractRules
from courier_audit.schemas.shipment import CanonicalField, CanonicalRow, OrderType

logger = logging.getLogger(__name__)

# Rupees; not configurable
OVERCHARGE_TOLERANCE = 1.0

ZONE_MISMATCH = "Zone Mismatch"
WEIGHT_OVERCHARGE = "Weight Overcharge"
INVALID_COD_CHARGE = "Invalid COD Charge"
RATE_OVERCHARGE = "Rate Overcharge"


def _to_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(result) else result


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def compute_expected_charge(row: CanonicalRow, contract: ContractRules) -> Tuple[float, float]:
    """Return (expected_freight, expected_total) for one shipment."""
    base_rate = contract.rate_for_zone(row.get(CanonicalField.ACTUAL_ZONE.value))
    billed_weight = _to_float(row.get(CanonicalField.BILLED_WEIGHT.value))
    expected_freight = base_rate * billed_weight

    if _to_text(row.get(CanonicalField.ORDER_TYPE.value)) == OrderType.COD.value:
        expected_total = expected_freight + expected_freight * contract.cod_fee_percentage / 100
    else:
        expected_total = expected_freight
    return expected_freight, expected_total


def compute_flags(row: CanonicalRow, expected_freight: float, contract: ContractRules) -> List[str]:
    """
    Issue labels for an overbilled shipment, in reporting order.

    Checks are independent; "Rate Overcharge" is the catch-all when none fire.

    A Prepaid shipment is only labelled "Invalid COD Charge" when the bill
    shows COD evidence: a COD amount, or a total within freight plus the
    contract's COD fee plus the tolerance. The bare rule "Prepaid and billed >
    freight + 1" fires on every overbilled Prepaid row, which would label a
    plain rate overcharge (Prepaid, zone A, 1 kg, billed 45 against 40) as a
    COD charge. Keep the evidence check.
    """
    flags = []

    if _to_text(row.get(CanonicalField.BILLED_ZONE.value)) != _to_text(row.get(CanonicalField.ACTUAL_ZONE.value)):
        flags.append(ZONE_MISMATCH)

    if _to_float(row.get(CanonicalField.BILLED_WEIGHT.value)) > _to_float(row.get(CanonicalField.ACTUAL_WEIGHT.value)):
        flags.append(WEIGHT_OVERCHARGE)

    billed_amount = _to_float(row.get(CanonicalField.TOTAL_BILLED_AMOUNT.value))
    is_prepaid = _to_text(row.get(CanonicalField.ORDER_TYPE.value)) == OrderType.PREPAID.value
    if is_prepaid and billed_amount > expected_freight + OVERCHARGE_TOLERANCE:
        cod_total = expected_freight * (1 + contract.cod_fee_percentage / 100)
        has_cod_amount = _to_float(row.get(CanonicalField.COD_AMOUNT.value)) > 0
        if has_cod_amount or billed_amount <= cod_total + OVERCHARGE_TOLERANCE:
            flags.append(INVALID_COD_CHARGE)

    if not flags:
        flags.append(RATE_OVERCHARGE)

    return flags


def audit_row(row: CanonicalRow, contract: ContractRules) -> Optional[Discrepancy]:
    """Evaluate one shipment; None when it is billed within tolerance."""
    billed_amount = _to_float(row.get(CanonicalField.TOTAL_BILLED_AMOUNT.value))
    expected_freight, expected_total = compute_expected_charge(row, contract)

    difference = billed_amount - expected_total
    if difference <= OVERCHARGE_TOLERANCE:
        return None

    flags = compute_flags(row, expected_freight, contract)
    return Discrepancy(
        awb_number=_to_text(row.get(CanonicalField.AWB.value)),
        issue_type=ISSUE_SEPARATOR.join(flags),
        billed_amount=billed_amount,
        correct_amount=round(expected_total, 2),
        difference=round(difference, 2),
    )


def analyze_invoice(rows: List[CanonicalRow], contract: ContractRules) -> AnalysisResult:
    """
    Audit every canonical row against the contract.

    Pure: the same rows and contract always give the same result.
    total_rows counts every input row, flagged or not.
    """
    start = time.perf_counter()
    discrepancies: List[Discrepancy] = []
    total_billed = 0.0

    for row in rows:
        total_billed += _to_float(row.get(CanonicalField.TOTAL_BILLED_AMOUNT.value))
        discrepancy = audit_row(row, contract)
        if discrepancy is not None:
            discrepancies.append(discrepancy)

    total_overcharge = sum(d.difference for d in discrepancies)
    result = AnalysisResult(
        discrepancies=discrepancies,
        total_overcharge=round(total_overcharge, 2),
        total_rows=len(rows),
        total_billed=round(total_billed, 2),
    )
    logger.debug(
        "Audited %d rows, %d flagged in %.3fs",
        result.total_rows,
        result.flagged_count,
        time.perf_counter() - start,
    )
    return result


def summarize_by_issue(result: AnalysisResult) -> Dict[str, Dict[str, float]]:
    """
    Overcharge and count per individual issue label, largest amount first.

    A multi-label discrepancy contributes an equal share to each label.
    """
    summary: Dict[str, Dict[str, float]] = {}
    for d in result.discrepancies:
        labels = d.issue_labels or [RATE_OVERCHARGE]
        share = d.difference / len(labels)
        for label in labels:
            entry = summary.setdefault(label, {"amount": 0.0, "count": 0})
            entry["amount"] += share
            entry["count"] += 1
    for entry in summary.values():
        entry["amount"] = round(entry["amount"], 2)
    return dict(sorted(summary.items(), key=lambda item: item[1]["amount"], reverse=True))
