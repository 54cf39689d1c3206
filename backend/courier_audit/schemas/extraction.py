"""
Invoice extraction schemas - rows handed over by the PDF/AI extractor.
"""
from pydantic import BaseModel
from typing import Any, Dict, List
import enum


class ExtractionSource(str, enum.Enum):
    TEXT = "text"
    AI = "ai"


class InvoiceExtraction(BaseModel):
    rows: List[Dict[str, Any]]
    source: ExtractionSource
    page_count: int = 1
