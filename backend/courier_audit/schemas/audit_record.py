"""
Audit history schemas.
"""
from pydantic import BaseModel
from typing import Dict, List


class OverchargeByType(BaseModel):
    weight_mismatch: float = 0.0
    zone_mismatch: float = 0.0
    duplicate_awb: float = 0.0
    incorrect_cod: float = 0.0
    rto_mismatch: float = 0.0
    other: float = 0.0

    class Config:
        frozen = True

    def total(self) -> float:
        return round(
            self.weight_mismatch
            + self.zone_mismatch
            + self.duplicate_awb
            + self.incorrect_cod
            + self.rto_mismatch
            + self.other,
            2,
        )


class AuditRecord(BaseModel):
    id: str
    timestamp: int  # epoch milliseconds
    provider_name: str
    file_name: str
    total_rows: int
    total_billed: float
    total_overcharge: float
    flagged_line_items: int
    overcharge_by_type: OverchargeByType

    class Config:
        frozen = True


class HistorySummary(BaseModel):
    date_range: str
    record_count: int = 0
    providers: List[str] = []
    total_recovered: float = 0.0
    total_billed: float = 0.0
    avg_overcharge_rate: float = 0.0  # percent of billed
    overcharge_by_provider: Dict[str, float] = {}
    overcharge_by_type: OverchargeByType = OverchargeByType()
