"""
Contract (rate card) API endpoints.
"""
from fastapi import APIRouter, HTTPException, status
from typing import List
from pydantic import ValidationError
from courier_audit.config.mapping_loader import get_contract_presets, get_contract_preset
from courier_audit.schemas.contract import ContractNormalizeRequest, ContractRules
from courier_audit.services.extraction import contract_from_extraction

router = APIRouter()


@router.get("/presets", response_model=List[ContractRules])
async def list_presets():
    return [ContractRules(**get_contract_preset(name)) for name in get_contract_presets()]


@router.get("/presets/{provider_name}", response_model=ContractRules)
async def get_preset(provider_name: str):
    preset = get_contract_preset(provider_name)
    if not preset:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No preset for provider {provider_name}"
        )
    return ContractRules(**preset)


@router.post("/normalize", response_model=ContractRules)
async def normalize_contract(request: ContractNormalizeRequest):
    """Turn an extracted rate-card record into contract rules."""
    try:
        return contract_from_extraction(request.extracted)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid contract record: {e.errors()[:1]}"
        )
