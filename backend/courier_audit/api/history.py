"""
Audit history API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List
from courier_audit.api.dependencies import get_history
from courier_audit.schemas.audit_record import AuditRecord, HistorySummary
from courier_audit.services.audit_history import AuditHistory

router = APIRouter()


@router.get("/", response_model=List[AuditRecord])
async def list_history(history: AuditHistory = Depends(get_history)):
    return history.load()


@router.get("/summary", response_model=HistorySummary)
async def history_summary(
    date_range: str = Query("all", alias="range"),
    history: AuditHistory = Depends(get_history),
):
    """Totals for the last 30 or 90 days, or all time."""
    try:
        return history.summarize(date_range)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history(history: AuditHistory = Depends(get_history)):
    history.clear()
