from .shipment import CanonicalField, OrderType, REQUIRED_FIELDS, OPTIONAL_FIELDS, ALL_FIELDS
from .contract import ContractRules, ContractNormalizeRequest
from .analysis import Discrepancy, AnalysisResult
from .audit_record import OverchargeByType, AuditRecord, HistorySummary
from .weight import WeightDataPoint, RegressionResult
from .detection import ColumnMatch, DetectionResult, DetectColumnsRequest, HeaderRowRequest
from .extraction import ExtractionSource, InvoiceExtraction
from .audit_run import AuditRunRequest, AuditRunResponse, IssueSummary

__all__ = [
    "CanonicalField",
    "OrderType",
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    "ALL_FIELDS",
    "ContractRules",
    "ContractNormalizeRequest",
    "Discrepancy",
    "AnalysisResult",
    "OverchargeByType",
    "AuditRecord",
    "HistorySummary",
    "WeightDataPoint",
    "RegressionResult",
    "ColumnMatch",
    "DetectionResult",
    "DetectColumnsRequest",
    "HeaderRowRequest",
    "ExtractionSource",
    "InvoiceExtraction",
    "AuditRunRequest",
    "AuditRunResponse",
    "IssueSummary",
]
