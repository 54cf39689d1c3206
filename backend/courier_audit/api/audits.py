"""
Audit run API endpoints.
"""
import logging
import traceback
from fastapi import APIRouter, Depends, HTTPException, status
from courier_audit.api.dependencies import get_history, get_weight_store
from courier_audit.config.mapping_loader import get_contract_preset
from courier_audit.schemas.audit_run import AuditRunRequest, AuditRunResponse, IssueSummary
from courier_audit.schemas.contract import ContractRules
from courier_audit.services.audit_engine import summarize_by_issue
from courier_audit.services.audit_history import AuditHistory
from courier_audit.services.audit_pipeline import run_audit_pipeline
from courier_audit.services.weight_regression import WeightDataStore

logger = logging.getLogger(__name__)
router = APIRouter()


def _resolve_contract(request: AuditRunRequest) -> ContractRules:
    if request.contract is not None:
        return request.contract
    preset = get_contract_preset(request.provider_name)
    if not preset:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No contract supplied and no preset for provider {request.provider_name}"
        )
    return ContractRules(**preset)


@router.post("/run", response_model=AuditRunResponse)
async def run_audit(
    request: AuditRunRequest,
    history: AuditHistory = Depends(get_history),
    weight_store: WeightDataStore = Depends(get_weight_store),
):
    """Audit one invoice file's rows against a rate card."""
    if request.grid is None and request.rows is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide either 'grid' or 'rows'"
        )
    if not request.provider_name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provider name cannot be empty"
        )

    contract = _resolve_contract(request)

    try:
        result = run_audit_pipeline(
            contract=contract,
            provider_name=request.provider_name.strip(),
            file_name=request.file_name,
            grid=request.grid,
            rows=request.rows,
            mapping_overrides=request.mapping,
            history=history,
            weight_store=weight_store,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Error running audit for {request.file_name}: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error running audit: {str(e)}"
        )

    prepared = result.prepared
    return AuditRunResponse(
        analysis=result.analysis,
        record=result.record,
        contract=contract,
        detection=prepared.detection,
        mapping=prepared.mapping,
        needs_manual_review=prepared.needs_manual_review,
        header_row=prepared.header_row,
        raw_row_count=prepared.raw_row_count,
        canonical_row_count=len(prepared.rows),
        issue_summary=[
            IssueSummary(issue_type=label, amount=entry["amount"], count=int(entry["count"]))
            for label, entry in summarize_by_issue(result.analysis).items()
        ],
        history_saved=result.history_saved,
        timings=result.timings,
    )
