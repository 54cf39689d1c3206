"""
Column detection schemas.
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class ColumnMatch(BaseModel):
    """Best raw header for one canonical field."""
    canonical: str
    raw_header: Optional[str] = None
    confidence: float = 0.0


class DetectionResult(BaseModel):
    mapping: Dict[str, Optional[str]]  # canonical -> raw header
    confidences: Dict[str, float]
    low_confidence_fields: List[str] = []  # required fields below threshold
    needs_manual_review: bool = False

    @classmethod
    def from_matches(cls, matches: List[ColumnMatch], low_confidence_fields: List[str]) -> "DetectionResult":
        return cls(
            mapping={m.canonical: m.raw_header for m in matches},
            confidences={m.canonical: m.confidence for m in matches},
            low_confidence_fields=list(low_confidence_fields),
            needs_manual_review=len(low_confidence_fields) > 0,
        )


class DetectColumnsRequest(BaseModel):
    headers: List[str]


class HeaderRowRequest(BaseModel):
    grid: List[List[Any]]
