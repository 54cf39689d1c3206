"""
Weight pattern schemas - declared vs billed weight pairs and regression output.
"""
from pydantic import BaseModel

# Alerting thresholds for systematic weight inflation
ALERT_R2_THRESHOLD = 0.7
ALERT_OVERCHARGE_PCT_THRESHOLD = 5.0


class WeightDataPoint(BaseModel):
    provider: str
    awb: str
    declared_weight_g: float
    billed_weight_g: float
    date: int  # epoch milliseconds at time of audit

    class Config:
        frozen = True


class RegressionResult(BaseModel):
    """billed = slope * declared + intercept, fitted per provider."""
    provider: str
    point_count: int
    slope: float
    intercept: float
    r2: float
    avg_overcharge_pct: float

    @property
    def is_systematic_inflation(self) -> bool:
        return (
            self.r2 >= ALERT_R2_THRESHOLD
            and self.avg_overcharge_pct >= ALERT_OVERCHARGE_PCT_THRESHOLD
        )
