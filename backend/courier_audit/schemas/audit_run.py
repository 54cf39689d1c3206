"""
Audit run request/response schemas.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any, List
from courier_audit.schemas.analysis import AnalysisResult
from courier_audit.schemas.audit_record import AuditRecord
from courier_audit.schemas.contract import ContractRules
from courier_audit.schemas.detection import DetectionResult


class AuditRunRequest(BaseModel):
    provider_name: str
    file_name: str
    contract: Optional[ContractRules] = None  # falls back to the provider's preset
    grid: Optional[List[List[Any]]] = None  # cells may be numbers or null
    rows: Optional[List[Dict[str, Any]]] = None
    mapping: Optional[Dict[str, Optional[str]]] = None  # reviewer-confirmed overrides


class IssueSummary(BaseModel):
    issue_type: str
    amount: float
    count: int


class AuditRunResponse(BaseModel):
    analysis: AnalysisResult
    record: AuditRecord
    contract: ContractRules
    detection: Optional[DetectionResult] = None
    mapping: Dict[str, Optional[str]]
    needs_manual_review: bool = False
    header_row: Optional[int] = None
    raw_row_count: int = 0
    canonical_row_count: int = 0
    issue_summary: List[IssueSummary] = []
    history_saved: bool = False
    timings: Optional[Dict[str, float]] = None
