import re

import pytest

from courier_audit.schemas.analysis import AnalysisResult, Discrepancy
from courier_audit.services.audit_history import (
    STORAGE_KEY,
    AuditHistory,
    build_audit_record,
    categorize_label,
    categorize_overcharge,
    summarize_records,
)
from conftest import FlakyStorage
from courier_audit.services.storage import InMemoryStorage

DAY_MS = 86_400_000
NOW_MS = 1_700_000_000_000


def _discrepancy(awb, issue_type, difference):
    return Discrepancy(
        awb_number=awb,
        issue_type=issue_type,
        billed_amount=100.0,
        correct_amount=100.0 - difference,
        difference=difference,
    )


def _analysis():
    discrepancies = [
        _discrepancy("X1", "Zone Mismatch, Weight Overcharge", 10.0),
        _discrepancy("X2", "Rate Overcharge", 3.0),
        _discrepancy("X3", "Invalid COD Charge", 2.5),
    ]
    return AnalysisResult(
        discrepancies=discrepancies,
        total_overcharge=15.5,
        total_rows=10,
        total_billed=500.0,
    )


@pytest.mark.parametrize("label,category", [
    ("Weight Overcharge", "weight_mismatch"),
    ("Zone Mismatch", "zone_mismatch"),
    ("Duplicate AWB", "duplicate_awb"),
    ("Invalid COD Charge", "incorrect_cod"),
    ("RTO Overcharge", "rto_mismatch"),
    ("Rate Overcharge", "other"),
])
def test_categorize_label(label, category):
    assert categorize_label(label) == category


def test_multi_label_difference_is_split_evenly():
    by_type = categorize_overcharge(_analysis().discrepancies)

    assert by_type.zone_mismatch == 5.0
    assert by_type.weight_mismatch == 5.0
    assert by_type.other == 3.0
    assert by_type.incorrect_cod == 2.5
    assert by_type.duplicate_awb == 0.0
    assert by_type.total() == 15.5


def test_build_audit_record():
    record = build_audit_record(_analysis(), "Delhivery", "march.csv", timestamp_ms=NOW_MS)

    assert re.match(r"^1700000000000-[a-z0-9]{5}$", record.id)
    assert record.timestamp == NOW_MS
    assert record.provider_name == "Delhivery"
    assert record.file_name == "march.csv"
    assert record.total_rows == 10
    assert record.flagged_line_items == 3
    assert record.total_overcharge == 15.5
    assert record.overcharge_by_type.total() == record.total_overcharge


def test_save_and_load(storage):
    history = AuditHistory(storage)
    record = build_audit_record(_analysis(), "Delhivery", "a.csv", timestamp_ms=NOW_MS)

    assert history.save(record) is True
    assert history.load() == [record]


def test_oldest_records_evicted_beyond_cap(storage):
    history = AuditHistory(storage, max_records=3)
    for i in range(5):
        history.save(build_audit_record(_analysis(), "P", f"{i}.csv", timestamp_ms=NOW_MS + i))

    assert [r.file_name for r in history.load()] == ["2.csv", "3.csv", "4.csv"]


def test_quota_failure_is_reported_not_raised():
    history = AuditHistory(InMemoryStorage(max_bytes=10))
    record = build_audit_record(_analysis(), "P", "a.csv", timestamp_ms=NOW_MS)

    assert history.save(record) is False
    assert history.load() == []


def test_corrupt_history_reads_as_empty(storage):
    storage.set(STORAGE_KEY, b"{not json")
    history = AuditHistory(storage)

    assert history.load() == []
    assert history.save(build_audit_record(_analysis(), "P", "a.csv", timestamp_ms=NOW_MS))
    assert len(history.load()) == 1


def test_malformed_entries_are_skipped(storage):
    history = AuditHistory(storage)
    history.save(build_audit_record(_analysis(), "P", "a.csv", timestamp_ms=NOW_MS))
    storage.set(STORAGE_KEY, storage.get(STORAGE_KEY)[:-1] + b', {"id": 1}]')

    assert len(history.load()) == 1


def test_clear(storage):
    history = AuditHistory(storage)
    history.save(build_audit_record(_analysis(), "P", "a.csv", timestamp_ms=NOW_MS))

    assert history.clear() is True
    assert history.load() == []


def test_summarize_by_date_range(storage):
    history = AuditHistory(storage)
    history.save(build_audit_record(_analysis(), "BlueDart", "old.csv", timestamp_ms=NOW_MS - 40 * DAY_MS))
    history.save(build_audit_record(_analysis(), "Delhivery", "new.csv", timestamp_ms=NOW_MS - DAY_MS))

    recent = history.summarize("30d", now_ms=NOW_MS)
    assert recent.record_count == 1
    assert recent.providers == ["Delhivery"]
    assert recent.total_recovered == 15.5
    assert recent.avg_overcharge_rate == 3.1

    everything = history.summarize("all", now_ms=NOW_MS)
    assert everything.record_count == 2
    assert everything.providers == ["BlueDart", "Delhivery"]
    assert everything.overcharge_by_provider == {"BlueDart": 15.5, "Delhivery": 15.5}
    assert everything.overcharge_by_type.zone_mismatch == 10.0
    assert everything.total_billed == 1000.0


def test_summarize_rejects_unknown_range(storage):
    with pytest.raises(ValueError):
        AuditHistory(storage).summarize("7d")


def test_summarize_no_records():
    summary = summarize_records([], "90d")
    assert summary.record_count == 0
    assert summary.avg_overcharge_rate == 0.0
    assert summary.overcharge_by_type.total() == 0.0


def test_unreadable_history_is_not_overwritten():
    storage = FlakyStorage()
    history = AuditHistory(storage)
    for i in range(5):
        history.save(build_audit_record(_analysis(), "P", f"{i}.csv", timestamp_ms=NOW_MS + i))

    storage.fail_reads = True
    assert history.save(build_audit_record(_analysis(), "P", "5.csv", timestamp_ms=NOW_MS + 5)) is False
    assert history.load() == []

    storage.fail_reads = False
    assert len(history.load()) == 5
    assert history.save(build_audit_record(_analysis(), "P", "6.csv", timestamp_ms=NOW_MS + 6)) is True
    assert len(history.load()) == 6
