"""
Audit analysis schemas - flagged shipments and per-run totals.
"""
from pydantic import BaseModel
from typing import List

ISSUE_SEPARATOR = ", "


class Discrepancy(BaseModel):
    awb_number: str
    issue_type: str  # e.g., "Zone Mismatch, Weight Overcharge"
    billed_amount: float
    correct_amount: float
    difference: float

    class Config:
        frozen = True

    @property
    def issue_labels(self) -> List[str]:
        return [label.strip() for label in self.issue_type.split(ISSUE_SEPARATOR) if label.strip()]


class AnalysisResult(BaseModel):
    discrepancies: List[Discrepancy] = []
    total_overcharge: float = 0.0
    total_rows: int = 0
    total_billed: float = 0.0

    class Config:
        frozen = True

    @property
    def flagged_count(self) -> int:
        return len(self.discrepancies)
