"""
Adapters for the PDF/AI extraction collaborator.

The extractor itself is external; this module only shapes what it returns
into raw rows the column matcher understands, and rate-card records into
ContractRules.
"""
import logging
from typing import Any, Dict, List, Optional

from courier_audit.schemas.contract import ContractRules
from courier_audit.schemas.extraction import ExtractionSource, InvoiceExtraction
from courier_audit.schemas.shipment import RawRow
from courier_audit.services.file_parser import is_good_quality, parse_text_table

logger = logging.getLogger(__name__)

# AI item key -> readable header the column matcher knows
AI_TEXT_KEYS = {
    "awb": "AWB No.",
    "zone": "Billed Zone",
    "totalBilled_INR": "Total Billed Amount",
    "codAmount_INR": "COD Amount",
}
# Gram-valued AI keys, converted to kilograms
AI_GRAM_KEYS = {
    "billedWeight_grams": "Billed Weight",
    "actualWeight_grams": "Actual Weight",
}


def normalize_ai_item(item: Dict[str, Any]) -> RawRow:
    """Add matcher-friendly headers next to the extractor's own keys."""
    row: RawRow = dict(item)
    for key, header in AI_TEXT_KEYS.items():
        if key in row:
            row[header] = row[key]
    for key, header in AI_GRAM_KEYS.items():
        value = row.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            row[header] = value / 1000
    return row


def extraction_from_text(text: str, page_count: int = 1) -> Optional[InvoiceExtraction]:
    """Text-layer rows, or None when they fail the quality gate and AI should be used."""
    rows = parse_text_table(text)
    if not is_good_quality(rows, text):
        logger.info("Text extraction rejected (%d rows); falling back to AI", len(rows))
        return None
    return InvoiceExtraction(rows=rows, source=ExtractionSource.TEXT, page_count=page_count)


def extraction_from_ai(items: List[Dict[str, Any]], page_count: int = 1) -> InvoiceExtraction:
    rows = [normalize_ai_item(item) for item in items if isinstance(item, dict)]
    return InvoiceExtraction(rows=rows, source=ExtractionSource.AI, page_count=page_count)


def contract_from_extraction(record: Dict[str, Any]) -> ContractRules:
    return ContractRules.from_extracted(record)
