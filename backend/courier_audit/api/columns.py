"""
Column detection API endpoints.
"""
from fastapi import APIRouter
from courier_audit.schemas.detection import DetectColumnsRequest, DetectionResult, HeaderRowRequest
from courier_audit.services.column_matcher import detect_columns
from courier_audit.services.header_locator import find_header_row

router = APIRouter()


@router.post("/detect", response_model=DetectionResult)
async def detect(request: DetectColumnsRequest):
    """Fuzzy-match raw headers to canonical invoice fields."""
    return detect_columns(request.headers)


@router.post("/header-row")
async def header_row(request: HeaderRowRequest):
    """Locate the header row of a raw grid."""
    return {"header_row": find_header_row(request.grid)}
