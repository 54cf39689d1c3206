"""
Weight discrepancy regression analysis.

Declared vs billed weight pairs are kept per AWB across audit runs, and a
least-squares line is fitted per provider to separate random billing noise
from systematic weight inflation.
"""
import logging
import time
from collections import OrderedDict
from typing import Dict, List, Optional

from pydantic import ValidationError

from courier_audit.schemas.shipment import CanonicalField, CanonicalRow
from courier_audit.schemas.weight import RegressionResult, WeightDataPoint
from courier_audit.services.storage import Storage, StorageUnavailable, load_json_list, save_json_list

logger = logging.getLogger(__name__)

STORAGE_KEY = "courier_audit_weight_data"
MAX_RECORDS = 10_000
MIN_POINTS_FOR_REGRESSION = 30
MAX_DISPLAY_POINTS = 300


def run_regression(points: List[WeightDataPoint]) -> Optional[RegressionResult]:
    """
    Least-squares fit of billed = m * declared + b.

        m  = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)
        b  = (Sy - m*Sx) / n
        R2 = 1 - SS_res / SS_tot

    Returns None with fewer than MIN_POINTS_FOR_REGRESSION points or when
    every declared weight is identical.
    """
    n = len(points)
    if n < MIN_POINTS_FOR_REGRESSION:
        return None

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    overcharge_pcts = []
    for p in points:
        x = p.declared_weight_g
        y = p.billed_weight_g
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x
        if x > 0:
            overcharge_pcts.append((y - x) / x * 100)

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        return None

    m = (n * sum_xy - sum_x * sum_y) / denom
    b = (sum_y - m * sum_x) / n

    mean_y = sum_y / n
    ss_tot = 0.0
    ss_res = 0.0
    for p in points:
        y_hat = m * p.declared_weight_g + b
        ss_tot += (p.billed_weight_g - mean_y) ** 2
        ss_res += (p.billed_weight_g - y_hat) ** 2
    r2 = 1.0 if ss_tot == 0 else 1 - ss_res / ss_tot

    avg_pct = sum(overcharge_pcts) / len(overcharge_pcts) if overcharge_pcts else 0.0

    return RegressionResult(
        provider=points[0].provider,
        point_count=n,
        slope=round(m, 4),
        intercept=round(b, 2),
        r2=round(r2, 4),
        avg_overcharge_pct=round(avg_pct, 2),
    )


def sample_for_display(points: List[WeightDataPoint], max_n: int = MAX_DISPLAY_POINTS) -> List[WeightDataPoint]:
    """Up to max_n evenly spaced points for scatter plots. Regression always uses the full set."""
    if len(points) <= max_n:
        return list(points)
    step = len(points) / max_n
    return [points[int(i * step)] for i in range(max_n)]


def group_by_provider(points: List[WeightDataPoint]) -> Dict[str, List[WeightDataPoint]]:
    grouped: Dict[str, List[WeightDataPoint]] = OrderedDict()
    for p in points:
        grouped.setdefault(p.provider, []).append(p)
    return grouped


def is_systematic_inflation(result: Optional[RegressionResult]) -> bool:
    """Simple conjunctive threshold on R2 and average overcharge, not a significance test."""
    return bool(result and result.is_systematic_inflation)


def collect_weight_points(
    rows: List[CanonicalRow],
    provider: str,
    timestamp_ms: Optional[int] = None,
) -> List[WeightDataPoint]:
    """Declared (actual) and billed weight in grams for every row carrying both."""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    points = []
    for row in rows:
        actual = row.get(CanonicalField.ACTUAL_WEIGHT.value)
        billed = row.get(CanonicalField.BILLED_WEIGHT.value)
        if not isinstance(actual, (int, float)) or not isinstance(billed, (int, float)):
            continue
        points.append(
            WeightDataPoint(
                provider=provider,
                awb=str(row.get(CanonicalField.AWB.value, "")),
                declared_weight_g=float(actual) * 1000,
                billed_weight_g=float(billed) * 1000,
                date=stamp,
            )
        )
    return points


class WeightDataStore:
    """Capped list of WeightDataPoint in a Storage, oldest evicted first."""

    def __init__(self, storage: Storage, max_records: int = MAX_RECORDS, key: str = STORAGE_KEY):
        self.storage = storage
        self.max_records = max_records
        self.key = key

    def load(self) -> List[WeightDataPoint]:
        try:
            items = load_json_list(self.storage, self.key)
        except StorageUnavailable as e:
            logger.warning("Weight data unavailable: %s", e)
            return []
        points = []
        for item in items:
            try:
                points.append(WeightDataPoint.model_validate(item))
            except ValidationError:
                continue
        return points

    def store(self, new_points: List[WeightDataPoint]) -> bool:
        """Append points. Persistence failures are logged and reported, never raised."""
        if not new_points:
            return True
        try:
            existing = load_json_list(self.storage, self.key)
        except StorageUnavailable as e:
            logger.warning("Weight data not persisted (%d new points): %s", len(new_points), e)
            return False
        merged = existing + [p.model_dump() for p in new_points]
        trimmed = merged[-self.max_records:] if self.max_records > 0 else []
        saved = save_json_list(self.storage, self.key, trimmed)
        if not saved:
            logger.warning("Weight data not persisted (%d new points)", len(new_points))
        return saved

    def clear(self) -> bool:
        return self.storage.delete(self.key)

    def regression_for(self, provider: str) -> Optional[RegressionResult]:
        return run_regression([p for p in self.load() if p.provider == provider])

    def regressions(self) -> Dict[str, Optional[RegressionResult]]:
        return {provider: run_regression(points) for provider, points in group_by_provider(self.load()).items()}
