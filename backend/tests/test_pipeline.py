import pytest

from conftest import canonical_row
from courier_audit.services.audit_history import AuditHistory
from courier_audit.services.audit_pipeline import prepare_rows, run_audit_pipeline
from courier_audit.services.storage import InMemoryStorage
from courier_audit.services.weight_regression import WeightDataStore

HEADERS = [
    "AWB No.", "Order Type", "Billed Weight", "Actual Weight",
    "Billed Zone", "Actual Zone", "Total Billed Amount", "Origin Pincode", "Destination Pincode",
]

GRID = [
    ["Delhivery Invoice - March 2024", "", "", "", "", "", "", "", ""],
    HEADERS,
    ["X1", "Prepaid", "1 kg", "1000g", "Zone A", "A", "₹45", "110001", "560 034"],
    ["X2", "cod", "1.0", "1.0", "B", "A", "50", "110001", "12"],
    ["X3", "Prepaid", "1", "1", "A", "A", "40", "110001", ""],
    ["", "Prepaid", "1", "1", "A", "A", "40", "110001", ""],
]


def test_prepare_rows_from_grid():
    prepared = prepare_rows(grid=GRID)

    assert prepared.header_row == 1
    assert prepared.raw_row_count == 4
    assert prepared.needs_manual_review is False
    assert prepared.mapping["AWB"] == "AWB No."
    assert prepared.mapping["DestPincode"] == "Destination Pincode"
    assert [r["AWB"] for r in prepared.rows] == ["X1", "X2", "X3"]

    x1, x2, _ = prepared.rows
    assert x1["BilledWeight"] == 1.0
    assert x1["ActualWeight"] == 1.0
    assert x1["BilledZone"] == "A"
    assert x1["TotalBilledAmount"] == 45.0
    assert x1["DestPincode"] == "560034"
    assert x2["OrderType"] == "COD"
    assert "DestPincode" not in x2


def test_canonical_rows_skip_detection():
    prepared = prepare_rows(rows=[canonical_row("X1", amount=45)])

    assert prepared.detection is None
    assert prepared.header_row is None
    assert prepared.mapping["AWB"] == "AWB"
    assert prepared.mapping["CODAmount"] is None
    assert prepared.rows[0]["TotalBilledAmount"] == 45.0


def test_mapping_overrides_win():
    row = canonical_row("X1")
    row["Corrected Zone"] = "C"
    prepared = prepare_rows(rows=[row], mapping_overrides={"ActualZone": "Corrected Zone"})

    assert prepared.mapping["ActualZone"] == "Corrected Zone"
    assert prepared.rows[0]["ActualZone"] == "C"


def test_unrecognised_headers_need_review():
    prepared = prepare_rows(rows=[{"Col1": "X1", "Col2": "45"}])
    assert prepared.needs_manual_review is True
    assert prepared.rows == []


def test_prepare_rows_requires_input():
    with pytest.raises(ValueError):
        prepare_rows()


def test_run_audit_pipeline_end_to_end(contract, storage):
    history = AuditHistory(storage)
    weight_store = WeightDataStore(storage)

    result = run_audit_pipeline(
        contract=contract,
        provider_name="Delhivery",
        file_name="march.csv",
        grid=GRID,
        history=history,
        weight_store=weight_store,
        timestamp_ms=1_700_000_000_000,
    )

    analysis = result.analysis
    assert analysis.total_rows == 3
    assert [(d.awb_number, d.issue_type, d.difference) for d in analysis.discrepancies] == [
        ("X1", "Rate Overcharge", 5.0),
        ("X2", "Zone Mismatch", 9.4),
    ]
    assert analysis.total_overcharge == 14.4

    assert result.history_saved is True
    assert result.weight_points_saved is True
    assert history.load() == [result.record]
    assert result.record.overcharge_by_type.zone_mismatch == 9.4
    assert result.record.overcharge_by_type.other == 5.0
    assert len(weight_store.load()) == 3
    assert {"prepare_rows", "audit", "persist", "total"} <= set(result.timings)


def test_pipeline_without_persistence(contract):
    result = run_audit_pipeline(contract, "Delhivery", "a.csv", rows=[canonical_row("X1", amount=45)])
    assert result.history_saved is False
    assert result.weight_points_saved is False
    assert result.analysis.flagged_count == 1


def test_persistence_failure_keeps_result(contract):
    full = InMemoryStorage(max_bytes=10)
    result = run_audit_pipeline(
        contract,
        "Delhivery",
        "a.csv",
        rows=[canonical_row("X1", amount=45)],
        history=AuditHistory(full),
        weight_store=WeightDataStore(full),
    )
    assert result.history_saved is False
    assert result.weight_points_saved is False
    assert result.analysis.total_overcharge == 5.0


def test_canonical_rows_with_padded_keys_are_kept():
    row = {f"{key} ": value for key, value in canonical_row("X1", amount=45).items()}
    prepared = prepare_rows(rows=[row])

    assert prepared.detection is None
    assert prepared.mapping["AWB"] == "AWB "
    assert len(prepared.rows) == 1
    assert prepared.rows[0]["AWB"] == "X1"
    assert prepared.rows[0]["TotalBilledAmount"] == 45.0


def test_grid_with_numeric_cells(contract):
    grid = [
        ["AWB", "OrderType", "BilledWeight", "ActualWeight", "BilledZone", "ActualZone", "TotalBilledAmount"],
        [1234567890, "Prepaid", 1, 1, "A", "A", 45],
    ]
    result = run_audit_pipeline(contract, "Delhivery", "a.csv", grid=grid)

    assert result.analysis.discrepancies[0].awb_number == "1234567890"
    assert result.analysis.total_overcharge == 5.0
