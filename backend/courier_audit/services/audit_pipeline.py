"""
Invoice audit pipeline - raw grid or rows in, audited result and history out.

    grid -> header row -> column matcher (skipped for canonical headers)
         -> mapping applier -> value normalizer -> audit engine
         -> audit history + weight data
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from courier_audit.schemas.analysis import AnalysisResult
from courier_audit.schemas.audit_record import AuditRecord
from courier_audit.schemas.contract import ContractRules
from courier_audit.schemas.detection import DetectionResult
from courier_audit.schemas.shipment import ALL_FIELDS, CanonicalRow, RawRow
from courier_audit.services.audit_engine import analyze_invoice
from courier_audit.services.audit_history import AuditHistory, build_audit_record
from courier_audit.services.column_matcher import detect_columns, identity_mapping, is_canonical_headers
from courier_audit.services.header_locator import find_header_row, rows_from_grid
from courier_audit.services.mapping_applier import apply_mapping, merge_mappings
from courier_audit.services.normalizer import normalize_rows
from courier_audit.services.weight_regression import WeightDataStore, collect_weight_points

logger = logging.getLogger(__name__)


@dataclass
class PreparedRows:
    rows: List[CanonicalRow]
    mapping: Dict[str, Optional[str]]
    detection: Optional[DetectionResult]  # None on the canonical fast path
    header_row: Optional[int] = None
    raw_row_count: int = 0

    @property
    def needs_manual_review(self) -> bool:
        return bool(self.detection and self.detection.needs_manual_review)


@dataclass
class PipelineResult:
    prepared: PreparedRows
    analysis: AnalysisResult
    record: AuditRecord
    history_saved: bool = False
    weight_points_saved: bool = False
    timings: Dict[str, float] = field(default_factory=dict)


def _collect_headers(rows: Sequence[RawRow]) -> List[str]:
    headers: List[str] = []
    seen = set()
    for row in rows:
        for key in row.keys():
            if key not in seen:
                seen.add(key)
                headers.append(key)
    return headers


def prepare_rows(
    grid: Optional[Sequence[Sequence[Any]]] = None,
    rows: Optional[Sequence[RawRow]] = None,
    mapping_overrides: Optional[Mapping[str, Optional[str]]] = None,
) -> PreparedRows:
    """
    Turn a raw grid or raw/canonical rows into normalized canonical rows.

    The column matcher only runs when the headers are not already canonical.
    Reviewer overrides replace detected entries field by field.
    """
    header_row = None
    if grid is not None:
        header_row = find_header_row(grid)
        raw_rows = rows_from_grid(grid, header_row)
    elif rows is not None:
        raw_rows = [dict(r) for r in rows]
    else:
        raise ValueError("Either grid or rows must be provided")

    headers = _collect_headers(raw_rows) if raw_rows else [str(c) for c in (grid[header_row] if grid else [])]

    detection = None
    if is_canonical_headers(headers):
        mapping = identity_mapping(headers)
    else:
        detection = detect_columns(headers)
        mapping = dict(detection.mapping)

    if mapping_overrides:
        mapping = merge_mappings(mapping, mapping_overrides)
    else:
        mapping = {f: mapping.get(f) for f in ALL_FIELDS}

    canonical = normalize_rows(apply_mapping(raw_rows, mapping))
    return PreparedRows(
        rows=canonical,
        mapping=mapping,
        detection=detection,
        header_row=header_row,
        raw_row_count=len(raw_rows),
    )


def run_audit_pipeline(
    contract: ContractRules,
    provider_name: str,
    file_name: str,
    grid: Optional[Sequence[Sequence[Any]]] = None,
    rows: Optional[Sequence[RawRow]] = None,
    mapping_overrides: Optional[Mapping[str, Optional[str]]] = None,
    history: Optional[AuditHistory] = None,
    weight_store: Optional[WeightDataStore] = None,
    timestamp_ms: Optional[int] = None,
) -> PipelineResult:
    """
    Audit one invoice file end to end.

    History and weight data are written after the audit; a failed write never
    affects the returned result.
    """
    timings: Dict[str, float] = {}
    overall_start = time.perf_counter()
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)

    prepare_start = time.perf_counter()
    prepared = prepare_rows(grid=grid, rows=rows, mapping_overrides=mapping_overrides)
    timings["prepare_rows"] = round(time.perf_counter() - prepare_start, 3)

    audit_start = time.perf_counter()
    analysis = analyze_invoice(prepared.rows, contract)
    timings["audit"] = round(time.perf_counter() - audit_start, 3)

    record = build_audit_record(analysis, provider_name, file_name, timestamp_ms=stamp)

    persist_start = time.perf_counter()
    history_saved = history.save(record) if history is not None else False
    weight_saved = False
    if weight_store is not None:
        weight_saved = weight_store.store(collect_weight_points(prepared.rows, provider_name, stamp))
    timings["persist"] = round(time.perf_counter() - persist_start, 3)
    timings["total"] = round(time.perf_counter() - overall_start, 3)

    logger.info(
        "Audited %s for %s: %d/%d rows kept, %d flagged, overcharge=%.2f timings=%s",
        file_name,
        provider_name,
        len(prepared.rows),
        prepared.raw_row_count,
        analysis.flagged_count,
        analysis.total_overcharge,
        timings,
    )

    return PipelineResult(
        prepared=prepared,
        analysis=analysis,
        record=record,
        history_saved=history_saved,
        weight_points_saved=weight_saved,
        timings=timings,
    )
