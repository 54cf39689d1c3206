"""
Weight pattern API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, List, Optional
from courier_audit.api.dependencies import get_weight_store
from courier_audit.schemas.weight import RegressionResult, WeightDataPoint
from courier_audit.services.weight_regression import (
    MIN_POINTS_FOR_REGRESSION,
    WeightDataStore,
    is_systematic_inflation,
    sample_for_display,
)

router = APIRouter()


def _regression_payload(provider: str, point_count: int, result: Optional[RegressionResult]) -> Dict:
    return {
        "provider": provider,
        "point_count": point_count,
        "min_points": MIN_POINTS_FOR_REGRESSION,
        "regression": result.model_dump() if result else None,
        "systematic_inflation": is_systematic_inflation(result),
    }


@router.get("/regression")
async def all_regressions(store: WeightDataStore = Depends(get_weight_store)):
    """Regression per provider over every stored point."""
    points = store.load()
    counts: Dict[str, int] = {}
    for p in points:
        counts[p.provider] = counts.get(p.provider, 0) + 1
    return [
        _regression_payload(provider, counts.get(provider, 0), result)
        for provider, result in store.regressions().items()
    ]


@router.get("/{provider}/regression")
async def provider_regression(provider: str, store: WeightDataStore = Depends(get_weight_store)):
    points = [p for p in store.load() if p.provider == provider]
    if not points:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No weight data for provider {provider}"
        )
    return _regression_payload(provider, len(points), store.regression_for(provider))


@router.get("/{provider}/sample", response_model=List[WeightDataPoint])
async def provider_sample(provider: str, store: WeightDataStore = Depends(get_weight_store)):
    """Evenly sampled points for scatter plots."""
    return sample_for_display([p for p in store.load() if p.provider == provider])


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_weights(store: WeightDataStore = Depends(get_weight_store)):
    store.clear()
