"""
Audit history - one durable summary record per audit run.

Records are appended to a capped list in the injected storage; the analytics
views read them back to draw overcharge trends per provider and category.
"""
import logging
import random
import string
import time
from typing import Dict, List, Optional

from pydantic import ValidationError

from courier_audit.schemas.analysis import AnalysisResult, Discrepancy
from courier_audit.schemas.audit_record import AuditRecord, HistorySummary, OverchargeByType
from courier_audit.services.storage import Storage, StorageUnavailable, load_json_list, save_json_list

logger = logging.getLogger(__name__)

STORAGE_KEY = "courier_audit_history"
MAX_RECORDS = 500

# Issue-label substring -> OverchargeByType field; first match wins
CATEGORY_RULES = [
    ("weight", "weight_mismatch"),
    ("zone", "zone_mismatch"),
    ("duplicate", "duplicate_awb"),
    ("cod", "incorrect_cod"),
    ("rto", "rto_mismatch"),
]
OTHER_CATEGORY = "other"

DATE_RANGES_MS = {
    "30d": 30 * 86_400_000,
    "90d": 90 * 86_400_000,
    "all": None,
}

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _now_ms() -> int:
    return int(time.time() * 1000)


def categorize_label(label: str) -> str:
    lower = label.lower()
    for needle, category in CATEGORY_RULES:
        if needle in lower:
            return category
    return OTHER_CATEGORY


def categorize_overcharge(discrepancies: List[Discrepancy]) -> OverchargeByType:
    """
    Split overcharge across the known issue categories.

    A discrepancy with several labels contributes an equal share of its
    difference to each label's category. Buckets are rounded once at the end.
    """
    buckets: Dict[str, float] = {field: 0.0 for field in OverchargeByType.model_fields}
    for d in discrepancies:
        labels = d.issue_labels or [""]
        share = d.difference / len(labels)
        for label in labels:
            buckets[categorize_label(label)] += share
    return OverchargeByType(**{k: round(v, 2) for k, v in buckets.items()})


def new_record_id(timestamp_ms: int) -> str:
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(5))
    return f"{timestamp_ms}-{suffix}"


def build_audit_record(
    analysis_result: AnalysisResult,
    provider_name: str,
    file_name: str,
    timestamp_ms: Optional[int] = None,
) -> AuditRecord:
    timestamp = timestamp_ms if timestamp_ms is not None else _now_ms()
    return AuditRecord(
        id=new_record_id(timestamp),
        timestamp=timestamp,
        provider_name=provider_name,
        file_name=file_name,
        total_rows=analysis_result.total_rows,
        total_billed=round(analysis_result.total_billed, 2),
        total_overcharge=round(analysis_result.total_overcharge, 2),
        flagged_line_items=analysis_result.flagged_count,
        overcharge_by_type=categorize_overcharge(analysis_result.discrepancies),
    )


class AuditHistory:
    """Append-only, capped list of AuditRecord in a Storage."""

    def __init__(self, storage: Storage, max_records: int = MAX_RECORDS, key: str = STORAGE_KEY):
        self.storage = storage
        self.max_records = max_records
        self.key = key

    def load(self) -> List[AuditRecord]:
        """Stored records, or [] when the store cannot be read."""
        try:
            items = load_json_list(self.storage, self.key)
        except StorageUnavailable as e:
            logger.warning("Audit history unavailable: %s", e)
            return []
        records = []
        for item in items:
            try:
                records.append(AuditRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed audit record: %s", e.errors()[:1])
        return records

    def save(self, record: AuditRecord) -> bool:
        """
        Append a record, evicting the oldest beyond the cap. Never raises.

        When the existing history cannot be read the write is skipped, so a
        read failure never replaces stored records.
        """
        try:
            existing = load_json_list(self.storage, self.key)
        except StorageUnavailable as e:
            logger.warning("Audit history not persisted for record %s: %s", record.id, e)
            return False
        existing.append(record.model_dump())
        trimmed = existing[-self.max_records:] if self.max_records > 0 else []
        saved = save_json_list(self.storage, self.key, trimmed)
        if not saved:
            logger.warning("Audit history not persisted for record %s", record.id)
        return saved

    def clear(self) -> bool:
        return self.storage.delete(self.key)

    def summarize(self, date_range: str = "all", now_ms: Optional[int] = None) -> HistorySummary:
        """Aggregate records inside a 30d / 90d / all window."""
        if date_range not in DATE_RANGES_MS:
            raise ValueError(f"Unknown date range: {date_range}")
        window = DATE_RANGES_MS[date_range]
        cutoff = (now_ms if now_ms is not None else _now_ms()) - window if window else 0

        records = sorted(
            (r for r in self.load() if r.timestamp >= cutoff),
            key=lambda r: r.timestamp,
        )
        return summarize_records(records, date_range)


def summarize_records(records: List[AuditRecord], date_range: str = "all") -> HistorySummary:
    providers: List[str] = []
    by_provider: Dict[str, float] = {}
    by_type: Dict[str, float] = {field: 0.0 for field in OverchargeByType.model_fields}
    total_recovered = 0.0
    total_billed = 0.0

    for record in records:
        if record.provider_name not in by_provider:
            providers.append(record.provider_name)
            by_provider[record.provider_name] = 0.0
        by_provider[record.provider_name] += record.total_overcharge
        total_recovered += record.total_overcharge
        total_billed += record.total_billed
        for field, value in record.overcharge_by_type.model_dump().items():
            by_type[field] += value

    avg_rate = round(total_recovered / total_billed * 100, 1) if total_billed > 0 else 0.0
    return HistorySummary(
        date_range=date_range,
        record_count=len(records),
        providers=providers,
        total_recovered=round(total_recovered, 2),
        total_billed=round(total_billed, 2),
        avg_overcharge_rate=avg_rate,
        overcharge_by_provider={k: round(v, 2) for k, v in by_provider.items()},
        overcharge_by_type=OverchargeByType(**{k: round(v, 2) for k, v in by_type.items()}),
    )
